"""
Table names and column enumerations of the hosted data service.

The schema itself is owned by the hosted service; these definitions mirror
the values its check constraints accept.
"""
import enum


# Tables
CLIENTS_TABLE = "clients"
RECOMMENDATIONS_TABLE = "recommendations"
TEAM_MEMBERS_TABLE = "team_members"

# Parents before children so foreign keys resolve on bulk copies
ALL_TABLES = (CLIENTS_TABLE, RECOMMENDATIONS_TABLE, TEAM_MEMBERS_TABLE)


# Enums
class Category(str, enum.Enum):
    """Recommendation categories."""

    SEO = "SEO"
    SOCIAL_MEDIA = "Social Media"
    CONTENT = "Content"
    DESIGN = "Design"
    DEVELOPMENT = "Development"
    STRATEGY = "Strategy"


class Priority(str, enum.Enum):
    """Recommendation priorities."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Status(str, enum.Enum):
    """Recommendation lifecycle states."""

    DRAFT = "Draft"
    APPROVED = "Approved"
    IMPLEMENTED = "Implemented"
    ARCHIVED = "Archived"


ADMIN_ROLE = "admin"
