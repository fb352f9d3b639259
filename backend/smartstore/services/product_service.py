"""
Product Service
Catalog CRUD, stock adjustments with an inventory movement trail and bulk import

Author: SmartStore
Date: 2025-11-05
"""
import io
import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Tuple

import pandas as pd
from sqlalchemy.orm import Session

from smartstore.core.exceptions import ConflictError, NotFoundError, ValidationError
from smartstore.domain.product import ProductCreate, ProductUpdate, CategoryCreate, MovementType
from smartstore.models import Product, Category, InventoryMovement, OrderItem, Warehouse
from smartstore.repositories import ProductRepository, CategoryRepository, InventoryMovementRepository

logger = logging.getLogger(__name__)

# Accepted header spellings for bulk import columns
IMPORT_COLUMNS = {
    "sku": ["sku", "code", "codigo", "articulo"],
    "name": ["name", "nombre", "producto", "title"],
    "price": ["price", "precio", "sale_price"],
    "cost": ["cost", "costo", "cost_price"],
    "stock_quantity": ["stock_quantity", "stock", "quantity", "cantidad"],
    "min_stock": ["min_stock", "stock_minimo"],
    "brand": ["brand", "marca"],
    "description": ["description", "descripcion"],
}


class ProductService:
    """
    Service for the product catalog of one organization

    Handles:
    - Product and category CRUD
    - Stock adjustments (never below zero, always with an InventoryMovement)
    - CSV/XLSX bulk import
    """

    def __init__(self, db: Session, organization_id: int):
        self.db = db
        self.organization_id = organization_id
        self.products = ProductRepository(db, organization_id)
        self.categories = CategoryRepository(db, organization_id)
        self.movements = InventoryMovementRepository(db, organization_id)

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def list_products(self, **filters) -> Tuple[List[Product], int]:
        return self.products.find_all(**filters)

    def get_product(self, product_id: int) -> Product:
        return self.products.get(product_id)

    def _check_category(self, category_id: Optional[int]) -> None:
        if category_id is not None:
            self.categories.get(category_id)

    def create_product(self, data: ProductCreate, source: str = "manual", external_id: str = None) -> Product:
        if self.products.find_by_sku(data.sku):
            raise ConflictError(f"SKU '{data.sku}' already exists", {"sku": data.sku})
        self._check_category(data.category_id)

        product = self.products.add(Product(**data.model_dump(), source=source, external_id=external_id))
        self.db.commit()
        self.db.refresh(product)
        logger.info(f"Product created: {product.sku} (org {self.organization_id})")
        return product

    def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        product = self.products.get(product_id)
        changes = data.model_dump(exclude_unset=True)

        new_sku = changes.get("sku")
        if new_sku and new_sku != product.sku and self.products.find_by_sku(new_sku):
            raise ConflictError(f"SKU '{new_sku}' already exists", {"sku": new_sku})
        if "category_id" in changes:
            self._check_category(changes["category_id"])

        for field, value in changes.items():
            setattr(product, field, value)

        self.db.commit()
        self.db.refresh(product)
        return product

    def delete_product(self, product_id: int) -> None:
        product = self.products.get(product_id)
        if self.db.query(OrderItem.id).filter(OrderItem.product_id == product.id).first():
            raise ConflictError(
                f"Product {product.sku} appears in orders; deactivate it instead",
                {"product_id": product.id},
            )
        self.products.delete(product)
        self.db.commit()

    # ------------------------------------------------------------------
    # Stock
    # ------------------------------------------------------------------

    def apply_stock_change(
        self,
        product: Product,
        quantity_change: int,
        movement_type: MovementType,
        reason: Optional[str] = None,
        created_by: Optional[str] = None,
        warehouse_id: Optional[int] = None,
        reference: Optional[str] = None,
    ) -> InventoryMovement:
        """
        Change on-hand stock and record the movement, without committing

        Callers (orders, sync, workflows) commit once their whole unit of work is done.
        """
        stock_before = product.stock_quantity or 0
        stock_after = stock_before + quantity_change
        if stock_after < 0:
            raise ValidationError(
                f"Insufficient stock for {product.sku}: {stock_before} available, {-quantity_change} requested",
                {"product_id": product.id, "available": stock_before, "requested": -quantity_change},
            )

        product.stock_quantity = stock_after
        movement = InventoryMovement(
            organization_id=self.organization_id,
            product_id=product.id,
            warehouse_id=warehouse_id,
            movement_type=MovementType(movement_type).value,
            quantity=quantity_change,
            stock_before=stock_before,
            stock_after=stock_after,
            reason=reason,
            reference=reference,
            created_by=created_by,
        )
        self.db.add(movement)
        self.db.flush()
        return movement

    def adjust_stock(
        self,
        product_id: int,
        quantity_change: int,
        reason: Optional[str] = None,
        user: Optional[str] = None,
        warehouse_id: Optional[int] = None,
    ) -> Tuple[Product, InventoryMovement]:
        """
        Manual stock adjustment

        Raises:
            ValidationError: the change would leave negative stock
        """
        product = self.products.get(product_id)
        if warehouse_id is not None:
            warehouse = self.db.query(Warehouse).filter(
                Warehouse.id == warehouse_id, Warehouse.organization_id == self.organization_id
            ).first()
            if warehouse is None:
                raise NotFoundError("Warehouse", warehouse_id)

        try:
            movement = self.apply_stock_change(
                product, quantity_change, MovementType.ADJUSTMENT,
                reason=reason, created_by=user, warehouse_id=warehouse_id,
            )
            self.db.commit()
        except ValidationError:
            self.db.rollback()
            raise

        self.db.refresh(product)
        logger.info(
            f"Stock adjusted for {product.sku}: {movement.stock_before} -> {movement.stock_after} ({reason or 'no reason'})"
        )
        return product, movement

    def list_movements(self, **filters) -> Tuple[List[InventoryMovement], int]:
        return self.movements.find_all(**filters)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def list_categories(self) -> List[Category]:
        return self.categories.find_all_ordered()

    def create_category(self, data: CategoryCreate) -> Category:
        self._check_category(data.parent_id)
        category = self.categories.add(Category(**data.model_dump()))
        self.db.commit()
        self.db.refresh(category)
        return category

    # ------------------------------------------------------------------
    # Bulk import
    # ------------------------------------------------------------------

    @staticmethod
    def _read_upload(file_content: bytes, filename: str) -> pd.DataFrame:
        # Cells stay text so SKUs like 00123 survive; numbers are parsed per column
        name = (filename or "").lower()
        if name.endswith((".xlsx", ".xls")):
            return pd.read_excel(io.BytesIO(file_content), sheet_name=0, header=0, dtype=str)
        if name.endswith(".csv"):
            return pd.read_csv(io.BytesIO(file_content), dtype=str, keep_default_na=True)
        raise ValidationError(f"Unsupported file type: {filename}. Use .csv or .xlsx")

    @staticmethod
    def _map_columns(df: pd.DataFrame) -> Dict[str, str]:
        mapping = {}
        for col in df.columns:
            col_lower = str(col).strip().lower()
            for field, aliases in IMPORT_COLUMNS.items():
                if field not in mapping and col_lower in aliases:
                    mapping[field] = col
        return mapping

    @staticmethod
    def _cell(row, column) -> Optional[str]:
        if column is None or pd.isna(row[column]):
            return None
        value = str(row[column]).strip()
        return value or None

    def import_products(self, file_content: bytes, filename: str, user: Optional[str] = None) -> Dict:
        """
        Create or update products from a CSV/XLSX upload

        Rows are matched by SKU. Rows missing sku or name are reported and skipped.
        Stock changes on existing products go through an InventoryMovement.

        Returns:
            {"created": n, "updated": n, "errors": [{"row": n, "error": "..."}], "total_rows": n}
        """
        try:
            df = self._read_upload(file_content, filename)
        except ValidationError:
            raise
        except Exception as e:
            logger.error(f"Could not parse import file {filename}: {e}")
            raise ValidationError(f"Could not read file: {e}")

        columns = self._map_columns(df)
        if "sku" not in columns or "name" not in columns:
            raise ValidationError(
                "File must have sku and name columns",
                {"columns": [str(c) for c in df.columns]},
            )

        created = updated = 0
        errors = []

        for idx, row in df.iterrows():
            row_number = int(idx) + 2  # header is row 1
            sku = self._cell(row, columns["sku"])
            name = self._cell(row, columns["name"])
            if not sku or not name:
                errors.append({"row": row_number, "error": "Missing sku or name"})
                continue

            try:
                price = self._decimal(self._cell(row, columns.get("price")))
                cost = self._decimal(self._cell(row, columns.get("cost")))
                stock = self._int(self._cell(row, columns.get("stock_quantity")))
                min_stock = self._int(self._cell(row, columns.get("min_stock")))
            except (InvalidOperation, ValueError) as e:
                errors.append({"row": row_number, "sku": sku, "error": f"Invalid number: {e}"})
                continue

            if (stock is not None and stock < 0) or (price is not None and price < 0):
                errors.append({"row": row_number, "sku": sku, "error": "Negative price or stock"})
                continue

            product = self.products.find_by_sku(sku)
            if product is None:
                self.products.add(Product(
                    sku=sku,
                    name=name,
                    price=price or Decimal("0"),
                    cost=cost,
                    stock_quantity=stock or 0,
                    min_stock=min_stock or 0,
                    brand=self._cell(row, columns.get("brand")),
                    description=self._cell(row, columns.get("description")),
                    source="import",
                ))
                created += 1
                continue

            product.name = name
            if price is not None:
                product.price = price
            if cost is not None:
                product.cost = cost
            if min_stock is not None:
                product.min_stock = min_stock
            brand = self._cell(row, columns.get("brand"))
            if brand:
                product.brand = brand
            if stock is not None and stock != product.stock_quantity:
                self.apply_stock_change(
                    product, stock - product.stock_quantity, MovementType.ADJUSTMENT,
                    reason=f"Bulk import {filename}", created_by=user,
                )
            updated += 1

        self.db.commit()
        logger.info(f"Import {filename}: {created} created, {updated} updated, {len(errors)} errors")
        return {"created": created, "updated": updated, "errors": errors, "total_rows": len(df)}

    @staticmethod
    def _decimal(value: Optional[str]) -> Optional[Decimal]:
        return Decimal(value) if value is not None else None

    @staticmethod
    def _int(value: Optional[str]) -> Optional[int]:
        return int(float(value)) if value is not None else None
