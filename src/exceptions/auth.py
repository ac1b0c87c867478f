from fastapi import HTTPException


class AuthenticationError(HTTPException):
    def __init__(self, message: str = "Não foi possível validar o administrador"):
        super().__init__(
            status_code=401,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AdminForbiddenError(HTTPException):
    def __init__(self, message: str = "Administrador sem permissão de acesso"):
        super().__init__(status_code=403, detail=message)


class AdminAlreadyExistsError(HTTPException):
    def __init__(self, email: str):
        super().__init__(
            status_code=409, detail=f"Já existe um administrador com o email {email}"
        )
