"""
Sobre de respuesta de la API

Éxito y error comparten la forma {success, code, message, data}; los listados
paginados ponen en data {items, total, page, page_size, pages}.
"""
import math
from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ResponseModel(BaseModel, Generic[T]):
    success: bool = True
    code: int = 200
    message: str = "Operación exitosa"
    data: Optional[T] = None


class PagedData(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int
    pages: int


class PagedResponseModel(ResponseModel[PagedData[T]], Generic[T]):
    pass


MessageResponse = ResponseModel[Any]
DictResponse = ResponseModel[dict]
ListResponse = ResponseModel[list]


def _envelope(success: bool, code: int, message: str, data: Any) -> dict:
    return {"success": success, "code": code, "message": message, "data": data}


def success_response(data: Any = None, message: str = "Operación exitosa", code: int = 200) -> dict:
    return _envelope(True, code, message, data)


def error_response(message: str = "Operación fallida", code: int = 400, data: Any = None) -> dict:
    return _envelope(False, code, message, data)


def page_offset(page: int, page_size: int) -> int:
    """Registros a saltar para una página 1-based"""
    return (page - 1) * page_size


def paged_response(
    items: list,
    total: int,
    page: int,
    page_size: int,
    message: str = "Consulta exitosa"
) -> dict:
    pages = math.ceil(total / page_size) if page_size > 0 else 0
    return success_response(
        data={"items": items, "total": total, "page": page, "page_size": page_size, "pages": pages},
        message=message,
    )
