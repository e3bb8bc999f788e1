"""Hierarchy helpers: validation, spot code generation and breadcrumbs."""

from homestash.services.hierarchy.breadcrumbs import BREADCRUMB_SEPARATOR, BreadcrumbResolver
from homestash.services.hierarchy.code_generator import generate_code, is_valid_code
from homestash.services.hierarchy.validation import HierarchyValidator

__all__ = [
    "BREADCRUMB_SEPARATOR",
    "BreadcrumbResolver",
    "HierarchyValidator",
    "generate_code",
    "is_valid_code",
]
