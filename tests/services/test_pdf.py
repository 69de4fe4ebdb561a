"""
Pruebas de generación de PDF
"""
from datetime import datetime
from types import SimpleNamespace

from app.services.pdf import statement_filename, study_report_pdf, wallet_statement_pdf


def _movement(amount, before, action="compra_creditos", description="Compra de créditos"):
    return SimpleNamespace(
        created_at=datetime(2026, 3, 1, 10, 30),
        action=action,
        payment_origin="empresa",
        description=description,
        balance_before=before,
        amount=amount,
        balance_after=before + amount,
    )


def test_statement_filename():
    name = statement_filename("empresa", datetime(2026, 3, 1, 9, 5))
    assert name == "estado_cuenta_empresa_20260301_0905.pdf"


def test_wallet_statement_pdf():
    movements = [
        _movement(-10, 100, action="publicacion_vacante", description="Publicación de vacante " + "x" * 80),
        _movement(100, 0),
    ]
    content = wallet_statement_pdf(
        holder_name="Acme",
        wallet_type="empresa",
        available=90,
        total_purchased=100,
        movements=movements,
    )
    assert content.startswith(b"%PDF")


def test_wallet_statement_pdf_without_movements():
    content = wallet_statement_pdf(
        holder_name="Reclutador",
        wallet_type="reclutador",
        available=0,
        total_purchased=0,
        movements=[],
        inherited=0,
    )
    assert content.startswith(b"%PDF")


def test_study_report_pdf():
    study = SimpleNamespace(
        folio="ESE-0001",
        candidate_name="Juan Pérez",
        position="Almacenista",
        visit_address="Av. Reforma 100",
        visit_date="2030-02-10",
        visit_time="11:00",
        candidate_present=False,
        absence_reason="No se encontraba",
        delivered_at=datetime(2030, 2, 11, 9),
        sociodemographic={"estado_civil": "casado"},
        housing={},
        economic={"ingresos": 18000, "gastos": [1, 2]},
        references=[{"nombre": "Ana <Ruiz>", "relacion": "vecina"}],
        visit_notes="Visita & entrevista",
        general_result="viable_con_observaciones",
        risk_rating="medio",
        final_notes=None,
    )
    assert study_report_pdf(study, verifier_name="Laura").startswith(b"%PDF")
