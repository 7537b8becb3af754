from weno_hybrid.fields.registry import CellField, FieldRegistry

__all__ = [
    "CellField",
    "FieldRegistry",
]
