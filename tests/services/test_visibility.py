"""Tests for the public visibility rules."""
from schemas.portfolio import (
    Certification,
    Experience,
    HiddenItems,
    PortfolioContent,
    Project,
    Section,
    SectionVisibility,
    SocialLinks,
)
from services.visibility import (
    filter_public_content,
    item_key,
    live_keys,
    prune_hidden_items,
)


def _project(project_id: str | None, title: str = "Project") -> Project:
    return Project(
        id=project_id,
        title=title,
        description="A project description.",
        technologies=["Python"],
    )


def _experience(experience_id: str | None, title: str) -> Experience:
    return Experience(
        id=experience_id,
        title=title,
        company="Acme",
        start_date="2020-01",
        description="Built and shipped things.",
    )


def _content(**overrides: object) -> PortfolioContent:
    defaults = {
        "display_name": "Jane Doe",
        "experience": [_experience("e1", "Engineer"), _experience("e2", "Lead")],
        "projects": [_project("id1", "One"), _project("id2", "Two"), _project("id3", "Three")],
        "certifications": [
            Certification(id="c1", title="AWS", description="Cloud", date="2023"),
        ],
        "skills": ["Go", "Rust", "Python"],
        "social_links": SocialLinks(
            github="https://github.com/jane",
            twitter="https://twitter.com/jane",
            email="jane@example.com",
        ),
    }
    defaults.update(overrides)
    return PortfolioContent(**defaults)


# =============================================================================
# item_key
# =============================================================================


def test__item_key__uses_id_when_present() -> None:
    assert item_key(_project("abc"), 4) == "abc"


def test__item_key__falls_back_to_index_without_id() -> None:
    assert item_key(_project(None), 4) == "4"


# =============================================================================
# filter_public_content
# =============================================================================


def test__filter_public_content__hides_listed_project_and_keeps_order() -> None:
    """Hiding the middle project leaves the other two in their original order."""
    result = filter_public_content(
        _content(),
        SectionVisibility(show_projects=True),
        HiddenItems(projects=["id2"]),
    )

    assert [project.id for project in result.projects] == ["id1", "id3"]


def test__filter_public_content__hidden_section_is_empty_regardless_of_hidden_items() -> None:
    content = _content(skills=["Go", "Rust"])

    for hidden_skills in ([], ["Go"], ["Go", "Rust"], ["Haskell"]):
        result = filter_public_content(
            content,
            SectionVisibility(show_skills=False),
            HiddenItems(skills=hidden_skills),
        )
        assert result.skills == []


def test__filter_public_content__every_hidden_section_leaves_no_trace() -> None:
    result = filter_public_content(
        _content(),
        SectionVisibility(
            show_experience=False,
            show_projects=False,
            show_certifications=False,
            show_skills=False,
            show_social_links=False,
        ),
        HiddenItems(),
    )

    assert result.experience == []
    assert result.projects == []
    assert result.certifications == []
    assert result.skills == []
    assert result.social_links.platforms() == {}
    # Profile fields are not sections and stay visible
    assert result.display_name == "Jane Doe"


def test__filter_public_content__hides_skills_by_value() -> None:
    result = filter_public_content(
        _content(),
        SectionVisibility(),
        HiddenItems(skills=["Rust"]),
    )

    assert result.skills == ["Go", "Python"]


def test__filter_public_content__hides_social_links_by_platform() -> None:
    result = filter_public_content(
        _content(),
        SectionVisibility(),
        HiddenItems(social_links=["twitter", "email"]),
    )

    assert result.social_links.platforms() == {"github": "https://github.com/jane"}


def test__filter_public_content__unknown_hidden_entries_are_inert() -> None:
    content = _content()

    result = filter_public_content(
        content,
        SectionVisibility(),
        HiddenItems(
            experience=["missing"],
            projects=["nope"],
            certifications=["gone"],
            skills=["COBOL"],
            social_links=["myspace"],
        ),
    )

    assert result == content


def test__filter_public_content__does_not_modify_input() -> None:
    content = _content()
    snapshot = content.model_copy(deep=True)

    filter_public_content(
        content,
        SectionVisibility(show_experience=False),
        HiddenItems(projects=["id1"], skills=["Go"]),
    )

    assert content == snapshot


def test__filter_public_content__is_idempotent() -> None:
    content = _content()
    visibility = SectionVisibility(show_certifications=False)
    hidden = HiddenItems(projects=["id3"], skills=["Go"], social_links=["github"])

    once = filter_public_content(content, visibility, hidden)
    twice = filter_public_content(once, visibility, hidden)

    assert once == twice


def test__filter_public_content__legacy_items_hidden_by_index() -> None:
    content = _content(projects=[_project(None, "A"), _project(None, "B"), _project(None, "C")])

    result = filter_public_content(content, SectionVisibility(), HiddenItems(projects=["1"]))

    assert [project.title for project in result.projects] == ["A", "C"]


def test__filter_public_content__index_key_drifts_when_legacy_list_is_reordered() -> None:
    """An index-keyed hide follows the position, not the item, after a reorder."""
    hidden = HiddenItems(projects=["0"])
    before = _content(projects=[_project(None, "A"), _project(None, "B")])
    after = _content(projects=[_project(None, "B"), _project(None, "A")])

    visible_before = filter_public_content(before, SectionVisibility(), hidden)
    visible_after = filter_public_content(after, SectionVisibility(), hidden)

    assert [project.title for project in visible_before.projects] == ["B"]
    assert [project.title for project in visible_after.projects] == ["A"]


def test__filter_public_content__hides_experience_by_id() -> None:
    result = filter_public_content(
        _content(),
        SectionVisibility(),
        HiddenItems(experience=["e1"]),
    )

    assert [item.title for item in result.experience] == ["Lead"]


# =============================================================================
# live_keys / prune_hidden_items
# =============================================================================


def test__live_keys__per_section() -> None:
    content = _content()

    assert live_keys(content, Section.PROJECTS) == {"id1", "id2", "id3"}
    assert live_keys(content, Section.SKILLS) == {"Go", "Rust", "Python"}
    assert live_keys(content, Section.SOCIAL_LINKS) == {"github", "twitter", "email"}


def test__prune_hidden_items__drops_entries_that_match_nothing() -> None:
    hidden = HiddenItems(
        projects=["id2", "deleted"],
        skills=["Go", "Perl"],
        social_links=["youtube"],
    )

    result = prune_hidden_items(_content(), hidden)

    assert result.projects == ["id2"]
    assert result.skills == ["Go"]
    assert result.social_links == []


def test__prune_hidden_items__only_touches_requested_sections() -> None:
    hidden = HiddenItems(projects=["deleted"], skills=["Perl"])

    result = prune_hidden_items(_content(), hidden, [Section.SKILLS])

    assert result.projects == ["deleted"]
    assert result.skills == []
