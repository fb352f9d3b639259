"""
Repository Layer - Data Access

This layer handles all database queries for the ORM models.
Every repository is bound to one organization.
"""
from smartstore.repositories.base import OrganizationScopedRepository
from smartstore.repositories.organization_repository import OrganizationRepository, UserRepository
from smartstore.repositories.product_repository import (
    ProductRepository,
    CategoryRepository,
    InventoryMovementRepository,
)
from smartstore.repositories.customer_repository import CustomerRepository
from smartstore.repositories.order_repository import OrderRepository
from smartstore.repositories.logistics_repository import (
    CourierRepository,
    DeliveryRepository,
    WarehouseRepository,
)
from smartstore.repositories.marketing_repository import CampaignRepository, CampaignTemplateRepository
from smartstore.repositories.finance_repository import ExpenseRepository
from smartstore.repositories.integration_repository import IntegrationRepository
from smartstore.repositories.marketplace_repository import VendorRepository
from smartstore.repositories.subscription_repository import PlanRepository, SubscriptionRepository
from smartstore.repositories.omnichannel_repository import ConversationRepository
from smartstore.repositories.personalization_repository import InteractionRepository, ExperimentRepository
from smartstore.repositories.workflow_repository import WorkflowRepository, WorkflowExecutionRepository
from smartstore.repositories.workflow_template_repository import WorkflowTemplateRepository

__all__ = [
    'OrganizationScopedRepository',
    'OrganizationRepository',
    'UserRepository',
    'ProductRepository',
    'CategoryRepository',
    'InventoryMovementRepository',
    'CustomerRepository',
    'OrderRepository',
    'CourierRepository',
    'DeliveryRepository',
    'WarehouseRepository',
    'CampaignRepository',
    'CampaignTemplateRepository',
    'ExpenseRepository',
    'IntegrationRepository',
    'VendorRepository',
    'PlanRepository',
    'SubscriptionRepository',
    'ConversationRepository',
    'InteractionRepository',
    'ExperimentRepository',
    'WorkflowRepository',
    'WorkflowExecutionRepository',
    'WorkflowTemplateRepository',
]
