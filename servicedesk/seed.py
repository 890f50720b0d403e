import logging
from sqlalchemy.orm import Session

from servicedesk.core.permissions import DEFAULT_ROLE_TEMPLATES
from servicedesk.models.role import RoleScope
from servicedesk.models.role_template import RoleTemplate
from servicedesk.repositories.role_template_repository import RoleTemplateRepository

logger = logging.getLogger(__name__)


def seed_role_templates(db: Session) -> list[RoleTemplate]:
    """
    Create the default role templates that do not exist yet.

    Existing templates are matched by name and left untouched, so running
    this repeatedly is safe.

    Returns:
        Newly created templates
    """
    repo = RoleTemplateRepository(db)
    created: list[RoleTemplate] = []
    for template in DEFAULT_ROLE_TEMPLATES:
        if repo.get_by_name(template["name"]):
            continue
        role = RoleTemplate(
            name=template["name"],
            description=template["description"],
            permissions=list(template["permissions"]),
            inherit_all_permissions=template["inherit_all_permissions"],
            is_system_role=template["is_system_role"],
            scope=RoleScope(template["scope"]),
        )
        created.append(repo.create(role))
        logger.info("Seeded role template %s", role.name)
    return created


if __name__ == "__main__":
    from servicedesk.core.logging_config import setup_logging
    from servicedesk.database import SessionLocal

    setup_logging()
    session = SessionLocal()
    try:
        seed_role_templates(session)
    finally:
        session.close()
