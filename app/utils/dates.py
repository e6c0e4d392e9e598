from datetime import datetime, timezone


def utcnow() -> datetime:
    # Las fechas se guardan en UTC sin tzinfo (columnas timestamp without time zone)
    return datetime.now(timezone.utc).replace(tzinfo=None)
