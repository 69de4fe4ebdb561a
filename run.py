#!/usr/bin/env python
"""
Arranque local del backend de Recluta Insight

    python run.py                    # 127.0.0.1:8000
    python run.py -p 8080 --reload   # otro puerto, con recarga
    python run.py --host 0.0.0.0 --workers 4
"""
import argparse
import shutil
import sys
from pathlib import Path

import uvicorn

ROOT_DIR = Path(__file__).parent


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Backend de Recluta Insight")
    parser.add_argument("-p", "--port", type=int, default=8000, help="Puerto (8000)")
    parser.add_argument("--host", default="127.0.0.1", help="Dirección (127.0.0.1)")
    parser.add_argument("--reload", action="store_true", help="Recarga en caliente")
    parser.add_argument("--workers", type=int, default=1, help="Procesos; se ignora con --reload")
    return parser.parse_args(argv)


def prepare_env():
    """Copia .env.example si falta .env"""
    env_file = ROOT_DIR / ".env"
    example = ROOT_DIR / ".env.example"
    if not env_file.exists() and example.exists():
        shutil.copy(example, env_file)
        print("Se creó .env a partir de .env.example; revisa las llaves de Stripe y del LLM")

    # la configuración se lee después de preparar .env
    from app.core.config import settings
    return settings


def main(argv=None):
    args = parse_args(argv)
    settings = prepare_env()

    print(f"{settings.app_name} en http://{args.host}:{args.port} (docs: /docs)")
    try:
        uvicorn.run(
            "app.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=1 if args.reload else args.workers,
            log_level="info",
        )
    except KeyboardInterrupt:
        print("Servicio detenido")
        sys.exit(0)


if __name__ == "__main__":
    main()
