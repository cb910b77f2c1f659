"""FamilyAid desktop client: identity, role resolution and access control."""

__version__ = "1.0.0"
