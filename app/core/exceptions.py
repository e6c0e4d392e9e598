# app/core/exceptions.py
# Errores de dominio; main.py los traduce a respuestas HTTP.

from typing import Any


class DomainError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> Any:
        return self.message


class ValidationError(DomainError):
    """Dato inválido en un campo concreto. Se rechaza antes de persistir nada."""

    status_code = 422

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field

    def to_detail(self) -> Any:
        # Mismo formato que los 422 de FastAPI/pydantic
        return [{"loc": ["body", self.field], "msg": self.message, "type": "value_error"}]


class NotFound(DomainError):
    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} no existe")
        self.entity = entity
        self.entity_id = entity_id


class DependencyWriteFailure(DomainError):
    """Falló una escritura acoplada (préstamo + transacciones); se hizo rollback completo."""

    status_code = 500
