"""Keeps the per-product tables aligned with the product list.

Rows are keyed by product name. After a sync every product has exactly one
row, rows of removed products are gone, and retained rows keep their values and
relative order. Rows for new products are appended in product-list order.

A renamed product is indistinguishable from remove + add, so its row is
rebuilt empty.
"""
from typing import Callable, List, Sequence, TypeVar

from ..schemas.form_models import AllergenEntry, FormData, ProductHazard

Row = TypeVar("Row")


def reconcile(
    rows: Sequence[Row],
    products: Sequence[str],
    key: Callable[[Row], str],
    make_default: Callable[[str], Row],
) -> List[Row]:
    wanted = set(products)
    retained: List[Row] = []
    seen = set()
    for row in rows:
        name = key(row)
        if name in wanted and name not in seen:
            retained.append(row)
            seen.add(name)

    missing = [p for p in products if p not in seen]
    return retained + [make_default(p) for p in missing]


def sync_allergen_matrix(rows: Sequence[AllergenEntry], products: Sequence[str]) -> List[AllergenEntry]:
    return reconcile(
        rows,
        products,
        key=lambda row: row.product_name,
        make_default=lambda name: AllergenEntry(product_name=name, allergens=[]),
    )


def sync_product_hazards(rows: Sequence[ProductHazard], products: Sequence[str]) -> List[ProductHazard]:
    return reconcile(
        rows,
        products,
        key=lambda row: row.product_name,
        make_default=lambda name: ProductHazard(product_name=name),
    )


def synchronize_form(form: FormData) -> FormData:
    """Return a copy of ``form`` with both derived tables reconciled."""
    return form.model_copy(update={
        "allergen_matrix": sync_allergen_matrix(form.allergen_matrix, form.products),
        "product_hazards": sync_product_hazards(form.product_hazards, form.products),
    })
