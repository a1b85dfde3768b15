"""
Templates - Built-in and user-authored content templates.

Placeholders are written {name}; variables are extracted in first-seen
order without duplicates.
"""

import re
from collections.abc import Mapping
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import UserTemplate
from app.exceptions import TemplateNotFoundError, TemplateRenderError, WriteVerificationError
from app.models.api import ActionType
from app.models.domain import TemplateData
from app.observability.logging import get_logger
from app.services.usage_ledger import UsageLedger

logger = get_logger(__name__)

PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


def extract_variables(content: str) -> tuple[str, ...]:
    """Placeholder names in first-seen order, de-duplicated."""
    return tuple(dict.fromkeys(PLACEHOLDER.findall(content)))


def render_content(content: str, values: Mapping[str, str]) -> str:
    """
    Substitute every {var}; extra values are ignored.

    Raises:
        TemplateRenderError: One or more placeholders have no value
    """
    missing = [name for name in extract_variables(content) if name not in values]
    if missing:
        raise TemplateRenderError(missing)
    return PLACEHOLDER.sub(lambda match: values[match.group(1)], content)


def _built_in(
    template_id: str, name: str, description: str, category: str, content: str
) -> TemplateData:
    return TemplateData(
        template_id=template_id,
        name=name,
        description=description,
        category=category,
        content=content,
        variables=extract_variables(content),
        is_public=True,
        usage_count=0,
        built_in=True,
    )


BUILT_IN_TEMPLATES: tuple[TemplateData, ...] = (
    _built_in(
        "blog-intro",
        "Blog Post Introduction",
        "Engaging introduction for blog articles",
        "Blog",
        "Have you ever wondered how {topic}? In this article, we'll explore {main_points} "
        "and discover {benefit}. Keep reading to find out {call_to_action}.",
    ),
    _built_in(
        "email-follow-up",
        "Follow-up Email",
        "Professional follow-up email",
        "Email",
        "Hello {name},\n\nI hope you're doing well. I'm reaching out to follow up on our "
        "conversation about {topic}.\n\n{main_message}\n\nI look forward to hearing from "
        "you.\n\nBest regards,\n{sender_name}",
    ),
    _built_in(
        "social-engagement",
        "Social Media Engagement Post",
        "Post to increase engagement on social media",
        "Social Media",
        "🚀 {hook_question}\n\n{main_content}\n\n✨ {call_to_action}\n\n{hashtags}",
    ),
    _built_in(
        "product-description",
        "E-commerce Product Description",
        "Persuasive description for online products",
        "E-commerce",
        "✨ {product_name}\n\n🎯 {main_benefit}\n\n📋 Features:\n{features_list}\n\n"
        "💡 {unique_selling_point}\n\n🛒 {call_to_action}",
    ),
)

_BUILT_IN_BY_ID = {template.template_id: template for template in BUILT_IN_TEMPLATES}


def filter_templates(
    templates: list[TemplateData], search: str | None = None, category: str | None = None
) -> list[TemplateData]:
    """Case-insensitive search over name, description and category; "all" disables the category filter."""
    selected = templates
    if category and category.lower() != "all":
        selected = [t for t in selected if t.category == category]
    if search:
        needle = search.lower()
        selected = [
            t
            for t in selected
            if needle in t.name.lower()
            or needle in (t.description or "").lower()
            or needle in t.category.lower()
        ]
    return selected


def template_categories(templates: list[TemplateData]) -> list[str]:
    """Distinct categories in first-seen order."""
    return list(dict.fromkeys(t.category for t in templates))


class TemplateService:
    """Template catalog for one caller: built-ins, own templates, and others' public ones."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.ledger = UsageLedger(session)

    async def list_visible(
        self, owner: str, search: str | None = None, category: str | None = None
    ) -> list[TemplateData]:
        """Built-ins first, then stored templates by usage_count descending."""
        stmt = (
            select(UserTemplate)
            .where(or_(UserTemplate.user_id == owner, UserTemplate.is_public.is_(True)))
            .order_by(UserTemplate.usage_count.desc(), UserTemplate.created_at.desc())
        )
        result = await self.session.execute(stmt)
        stored = [_template_to_domain(t) for t in result.scalars().all()]
        return filter_templates([*BUILT_IN_TEMPLATES, *stored], search, category)

    async def create(
        self,
        owner: str,
        name: str,
        category: str,
        content: str,
        description: str | None = None,
        is_public: bool = False,
    ) -> TemplateData:
        """Store a template; its variables are extracted from the content."""
        template = UserTemplate(
            user_id=owner,
            name=name,
            description=description,
            category=category,
            content=content,
            variables=list(extract_variables(content)),
            is_public=is_public,
            usage_count=0,
        )
        self.session.add(template)
        await self.session.flush()

        verified = await self.session.get(UserTemplate, template.id)
        if verified is None:
            raise WriteVerificationError(f"Template {template.id} not found after insert")

        await self.session.commit()

        logger.info(
            "template_created",
            user_id=owner,
            template_id=str(verified.id),
            variables=len(verified.variables),
        )
        return _template_to_domain(verified)

    async def get(self, owner: str, template_id: str) -> TemplateData:
        """
        Look up a built-in id or a stored template visible to the caller.

        Raises:
            TemplateNotFoundError: Unknown id, or another user's private template
        """
        built_in = _BUILT_IN_BY_ID.get(template_id)
        if built_in is not None:
            return built_in

        try:
            stored_id = UUID(template_id)
        except ValueError:
            raise TemplateNotFoundError(template_id) from None

        stmt = select(UserTemplate).where(
            UserTemplate.id == stored_id,
            or_(UserTemplate.user_id == owner, UserTemplate.is_public.is_(True)),
        )
        result = await self.session.execute(stmt)
        template = result.scalar_one_or_none()
        if template is None:
            raise TemplateNotFoundError(template_id)
        return _template_to_domain(template)

    async def render(self, owner: str, template_id: str, values: Mapping[str, str]) -> str:
        """
        Render a template and record the use.

        Raises:
            TemplateNotFoundError: Template not visible to the caller
            TemplateRenderError: Placeholders without values
        """
        template = await self.get(owner, template_id)
        rendered = render_content(template.content, values)

        if not template.built_in:
            await self.session.execute(
                update(UserTemplate)
                .where(UserTemplate.id == UUID(template.template_id))
                .values(usage_count=UserTemplate.usage_count + 1)
            )
            await self.session.commit()

        await self.ledger.append(owner, ActionType.TEMPLATE_USED)

        logger.info("template_rendered", user_id=owner, template_id=template_id)
        return rendered


def _template_to_domain(template: UserTemplate) -> TemplateData:
    """Convert ORM template to domain model."""
    return TemplateData(
        template_id=str(template.id),
        name=template.name,
        description=template.description,
        category=template.category,
        content=template.content,
        variables=tuple(template.variables),
        is_public=template.is_public,
        usage_count=template.usage_count,
        built_in=False,
        user_id=template.user_id,
    )
