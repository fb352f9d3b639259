"""
Modelos de base de datos
"""
from .organization import Organization, User
from .catalog import Category, Product, Warehouse, InventoryMovement
from .customer import Customer
from .order import Order, OrderItem
from .logistics import Courier, Delivery
from .marketing import Campaign, CampaignTemplate
from .finance import Expense
from .integration import IntegrationConfig
from .marketplace import Vendor, VendorProduct, VendorSale, VendorPayout
from .subscription import SubscriptionPlan, Subscription, UsageRecord
from .omnichannel import Conversation, ChannelMessage
from .personalization import CustomerInteraction, Experiment
from .workflow import Workflow, WorkflowExecution, WorkflowLog, WorkflowTemplate

__all__ = [
    "Organization",
    "User",
    "Category",
    "Product",
    "Warehouse",
    "InventoryMovement",
    "Customer",
    "Order",
    "OrderItem",
    "Courier",
    "Delivery",
    "Campaign",
    "CampaignTemplate",
    "Expense",
    "IntegrationConfig",
    "Vendor",
    "VendorProduct",
    "VendorSale",
    "VendorPayout",
    "SubscriptionPlan",
    "Subscription",
    "UsageRecord",
    "Conversation",
    "ChannelMessage",
    "CustomerInteraction",
    "Experiment",
    "Workflow",
    "WorkflowExecution",
    "WorkflowLog",
    "WorkflowTemplate",
]
