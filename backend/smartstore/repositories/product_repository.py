"""
Product Repository - Data Access Layer for Products

Author: SmartStore
Date: 2025-11-04
"""
from typing import List, Optional, Tuple

from sqlalchemy import or_

from smartstore.models import Product, Category, InventoryMovement
from smartstore.repositories.base import OrganizationScopedRepository


class ProductRepository(OrganizationScopedRepository[Product]):
    """
    Repository for Product data access

    All product queries are centralized here.
    """
    model = Product
    entity_name = "Product"

    def find_by_sku(self, sku: str) -> Optional[Product]:
        return self._query().filter(Product.sku == sku).first()

    def find_by_external_id(self, source: str, external_id: str) -> Optional[Product]:
        return self._query().filter(Product.source == source, Product.external_id == external_id).first()

    def find_all(
        self,
        search: Optional[str] = None,
        category_id: Optional[int] = None,
        is_active: Optional[bool] = None,
        low_stock: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters

        Args:
            search: Search in name, SKU or brand
            category_id: Filter by category
            is_active: Filter by active status
            low_stock: Only products at or below their min_stock
            limit: Maximum results to return
            offset: Number of results to skip

        Returns:
            Tuple of (list of products, total count)
        """
        query = self._query()

        if search:
            term = f"%{search}%"
            query = query.filter(or_(Product.name.ilike(term), Product.sku.ilike(term), Product.brand.ilike(term)))

        if category_id is not None:
            query = query.filter(Product.category_id == category_id)

        if is_active is not None:
            query = query.filter(Product.is_active == is_active)

        if low_stock:
            query = query.filter(Product.stock_quantity <= Product.min_stock)

        return self._paginate(query, limit, offset, Product.name)

    def find_active_in_stock(self) -> List[Product]:
        return self._query().filter(Product.is_active.is_(True), Product.stock_quantity > 0).all()


class CategoryRepository(OrganizationScopedRepository[Category]):
    model = Category
    entity_name = "Category"

    def find_all_ordered(self) -> List[Category]:
        return self._query().order_by(Category.name).all()


class InventoryMovementRepository(OrganizationScopedRepository[InventoryMovement]):
    model = InventoryMovement
    entity_name = "Inventory movement"

    def find_all(
        self,
        product_id: Optional[int] = None,
        warehouse_id: Optional[int] = None,
        movement_type: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> Tuple[List[InventoryMovement], int]:
        query = self._query()
        if product_id is not None:
            query = query.filter(InventoryMovement.product_id == product_id)
        if warehouse_id is not None:
            query = query.filter(InventoryMovement.warehouse_id == warehouse_id)
        if movement_type:
            query = query.filter(InventoryMovement.movement_type == movement_type)
        return self._paginate(query, limit, offset, InventoryMovement.id.desc())
