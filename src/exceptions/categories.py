from fastapi import HTTPException


class CategoryError(HTTPException):
    """Exceção base para erros relacionados às categorias"""

    pass


class CategoryNotFoundError(CategoryError):
    def __init__(self, category_id=None):
        message = (
            "Categoria não encontrada"
            if category_id is None
            else f"Categoria de ID {category_id} não encontrada"
        )
        super().__init__(status_code=404, detail=message)


class ParentCategoryNotFoundError(CategoryError):
    def __init__(self, parent_id=None):
        message = (
            "Categoria pai não encontrada"
            if parent_id is None
            else f"Categoria pai de ID {parent_id} não encontrada"
        )
        super().__init__(status_code=400, detail=message)


class InvalidParentCategoryError(CategoryError):
    def __init__(self, message: str = "A categoria pai deve ser de nível superior"):
        super().__init__(status_code=400, detail=message)


class CategoryHasChildrenError(CategoryError):
    def __init__(self, category_id=None):
        super().__init__(
            status_code=409,
            detail=f"A categoria de ID {category_id} possui subcategorias",
        )


class CategoryHasProductsError(CategoryError):
    def __init__(self, category_id=None):
        super().__init__(
            status_code=409,
            detail=f"A categoria de ID {category_id} possui produtos vinculados",
        )


class CategorySearchError(CategoryError):
    def __init__(self):
        super().__init__(
            status_code=400, detail="O parâmetro 'query' é obrigatório"
        )


class ReassignmentParentNotFoundError(CategoryError):
    def __init__(self):
        super().__init__(
            status_code=400,
            detail="Uma ou mais novas categorias pai não foram encontradas",
        )


class CategoryFetchError(CategoryError):
    def __init__(self, error: str = "Falha ao buscar categorias"):
        super().__init__(status_code=500, detail=error)


class CategoryWriteError(CategoryError):
    def __init__(self, error: str):
        super().__init__(
            status_code=500, detail=f"Falha na gravação da categoria: {error}"
        )
