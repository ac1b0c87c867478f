from fastapi import HTTPException


class ProductError(HTTPException):
    """Exceção base para erros relacionados aos produtos"""

    pass


class ProductNotFoundError(ProductError):
    def __init__(self, product_id=None):
        message = (
            "Produto não encontrado"
            if product_id is None
            else f"Produto de ID {product_id} não encontrado"
        )
        super().__init__(status_code=404, detail=message)


class InvalidSubCategoryError(ProductError):
    def __init__(self, sub_category_id=None):
        super().__init__(
            status_code=400,
            detail=f"A subcategoria de ID {sub_category_id} não existe ou não é uma subcategoria",
        )


class ProductSearchError(ProductError):
    def __init__(self):
        super().__init__(status_code=400, detail="O parâmetro 'query' é obrigatório")


class ProductWriteError(ProductError):
    def __init__(self, error: str):
        super().__init__(
            status_code=500, detail=f"Falha na gravação do produto: {error}"
        )
