"""
Marketplace repositories
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_

from smartstore.models import Vendor, VendorProduct, VendorSale
from smartstore.repositories.base import OrganizationScopedRepository


class VendorRepository(OrganizationScopedRepository[Vendor]):
    model = Vendor
    entity_name = "Vendor"

    def find_by_email(self, email: str) -> Optional[Vendor]:
        return self._query().filter(Vendor.email == email).first()

    def search(
        self,
        query_text: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Vendor], int]:
        query = self._query()
        if query_text:
            term = f"%{query_text}%"
            query = query.filter(or_(
                Vendor.business_name.ilike(term),
                Vendor.email.ilike(term),
                Vendor.description.ilike(term),
            ))
        if status:
            query = query.filter(Vendor.status == status)
        return self._paginate(query, limit, offset, Vendor.business_name)

    def find_approved(self) -> List[Vendor]:
        return self._query().filter(Vendor.status == "approved").order_by(Vendor.id).all()

    def find_product(self, vendor_product_id: int) -> Optional[VendorProduct]:
        """Vendor listing, only when its vendor belongs to this organization"""
        return (
            self.db.query(VendorProduct)
            .join(Vendor, VendorProduct.vendor_id == Vendor.id)
            .filter(VendorProduct.id == vendor_product_id, Vendor.organization_id == self.organization_id)
            .first()
        )

    def sales_for_vendor(
        self,
        vendor_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        unpaid_only: bool = False,
    ) -> List[VendorSale]:
        query = self.db.query(VendorSale).filter(VendorSale.vendor_id == vendor_id)
        if start:
            query = query.filter(VendorSale.created_at >= start)
        if end:
            query = query.filter(VendorSale.created_at <= end)
        if unpaid_only:
            query = query.filter(VendorSale.payout_id.is_(None))
        return query.order_by(VendorSale.created_at).all()
