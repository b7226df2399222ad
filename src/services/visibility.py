"""
Public visibility rules for portfolio content.

Pure functions with no I/O. The public page renders the result of
filter_public_content(); the owner's dashboard and exports use the raw content.

Rules:
1. A section switched off in SectionVisibility is emptied, whatever HiddenItems says.
2. In a visible id-keyed section (experience, projects, certifications), items
   whose key is listed in HiddenItems are dropped. Remaining order is preserved.
3. Skills are hidden by their literal text; social links by platform key.

An item without a persisted id is keyed by its list index (as a string). That key
moves if the list is reordered, so a hidden index can end up hiding a different
item after an edit. New items always receive ids on save, so only legacy data is
affected.
"""
from collections.abc import Sequence

from schemas.portfolio import (
    ID_KEYED_SECTIONS,
    HiddenItems,
    PortfolioContent,
    Section,
    SectionItem,
    SectionVisibility,
    SocialLinks,
)


def item_key(item: SectionItem, index: int) -> str:
    """Identity used for hidden-item matching: the item id, else its index."""
    return item.id if item.id else str(index)


def _visible_items(items: Sequence[SectionItem], hidden: set[str]) -> list:
    return [item for index, item in enumerate(items) if item_key(item, index) not in hidden]


def filter_public_content(
    content: PortfolioContent,
    section_visibility: SectionVisibility,
    hidden_items: HiddenItems,
) -> PortfolioContent:
    """
    Return the content a public viewer may see.

    Hidden-item entries that match nothing are ignored. The input is not modified.

    Args:
        content: Raw portfolio content.
        section_visibility: Whole-section toggles.
        hidden_items: Per-section hidden ids or values.

    Returns:
        A new PortfolioContent with hidden sections emptied and hidden items removed.
    """
    updates: dict = {}

    for section in ID_KEYED_SECTIONS:
        items = getattr(content, section.value)
        if not section_visibility.is_visible(section):
            updates[section.value] = []
        else:
            hidden = set(hidden_items.for_section(section))
            updates[section.value] = _visible_items(items, hidden)

    if section_visibility.is_visible(Section.SKILLS):
        hidden_skills = set(hidden_items.skills)
        updates["skills"] = [skill for skill in content.skills if skill not in hidden_skills]
    else:
        updates["skills"] = []

    if section_visibility.is_visible(Section.SOCIAL_LINKS):
        hidden_platforms = set(hidden_items.social_links)
        updates["social_links"] = SocialLinks.model_validate({
            platform: value
            for platform, value in content.social_links.platforms().items()
            if platform not in hidden_platforms
        })
    else:
        updates["social_links"] = SocialLinks()

    return content.model_copy(update=updates, deep=True)


def live_keys(content: PortfolioContent, section: Section) -> set[str]:
    """All keys that currently identify something in a section."""
    if section == Section.SKILLS:
        return set(content.skills)
    if section == Section.SOCIAL_LINKS:
        return set(content.social_links.platforms())
    items = getattr(content, section.value)
    return {item_key(item, index) for index, item in enumerate(items)}


def prune_hidden_items(
    content: PortfolioContent,
    hidden_items: HiddenItems,
    sections: Sequence[Section] | None = None,
) -> HiddenItems:
    """
    Drop hidden-item entries that no longer match anything.

    Stale entries are harmless to filtering; pruning keeps the stored lists from
    growing after items are deleted.

    Args:
        content: Current portfolio content.
        hidden_items: Stored hidden items.
        sections: Sections to prune. Defaults to all sections.

    Returns:
        A new HiddenItems with stale entries removed from the requested sections.
    """
    targets = sections if sections is not None else list(Section)
    updates = {}
    for section in targets:
        keys = live_keys(content, section)
        updates[section.value] = [
            key for key in hidden_items.for_section(section) if key in keys
        ]
    return hidden_items.model_copy(update=updates)
