"""
SmartStore SaaS - multi-tenant e-commerce administration backend
"""
__version__ = "1.0.0"
