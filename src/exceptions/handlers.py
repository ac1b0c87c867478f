import logging

from fastapi import Request, status, FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.schemas.response import error_body

logger = logging.getLogger(__name__)


def translate_pydantic_error(error: dict) -> str:
    type_ = error.get("type", "")
    msg = error.get("msg", "")

    translations = {
        "missing": "Campo obrigatório ausente.",
        "string_type": "O valor fornecido deve ser uma string.",
        "string_too_short": f"O texto deve ter pelo menos {error.get('ctx', {}).get('min_length', '')} caracteres.",
        "string_too_long": f"O texto deve ter no máximo {error.get('ctx', {}).get('max_length', '')} caracteres.",
        "int_parsing": "O valor fornecido não é um número inteiro válido.",
        "float_parsing": "O valor fornecido não é um número decimal válido.",
        "bool_parsing": "O valor fornecido não é um booleano válido.",
        "uuid_parsing": "O valor fornecido não é um UUID válido.",
        "date_parsing": "A data fornecida é inválida. O formato esperado é YYYY-MM-DD.",
        "datetime_parsing": "O formato de data e hora fornecido é inválido.",
        "email_parsing": "O endereço de e-mail fornecido é inválido.",
        "value_error": f"Erro de valor: {msg}",
    }

    if type_ in translations:
        return translations[type_]

    if type_ == "enum":
        expected = error.get("ctx", {}).get("expected", "")
        return f"O valor deve ser um dos seguintes: {expected}."

    if type_ == "literal_error":
        expected = error.get("ctx", {}).get("expected", "")
        return f"O valor deve ser um dos seguintes: {expected}."

    if "Input should be" in msg:
        return msg.replace("Input should be", "O valor deve ser")

    if "Field required" in msg:
        return "Campo obrigatório."

    return msg


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    translated_errors = []

    for error in errors:
        translated_error = error.copy()
        translated_error["msg"] = translate_pydantic_error(error)
        translated_errors.append(translated_error)

    body = error_body(request, "Requisição inválida")
    body["detail"] = jsonable_encoder(translated_errors)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        content=body,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} falhou: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.detail),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
