"""Role names seeded by the first migration, and the checks built on them."""

ADMIN_ROLE = "admin"
AGENT_ROLE = "agent"


def is_admin(user) -> bool:
    return user.role is not None and user.role.name == ADMIN_ROLE
