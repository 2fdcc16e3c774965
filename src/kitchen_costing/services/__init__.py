"""
Service layer for Kitchen Costing.

Costing and pricing live in pure modules (unit_converter,
recipe_cost_service.aggregate, pricing_service, duplicate_service,
recipe_access_service.can_view_recipe); the remaining modules are
tenant-scoped database services built on database.session_scope().
"""
