"""
Selection of the repositories to clone.
"""

from typing import List, Sequence

from core.entities import FilterConfiguration, OwnerType, Repository, Visibility


def _visibility_matches(repo: Repository, filters: FilterConfiguration) -> bool:
    if filters.visibility is Visibility.ALL:
        return True
    if filters.visibility is Visibility.PRIVATE:
        return repo.is_private
    return not repo.is_private


def _owner_type_matches(repo: Repository, filters: FilterConfiguration) -> bool:
    if filters.owner_type is OwnerType.ALL:
        return True
    if filters.owner_type is OwnerType.ORG:
        return repo.owner.is_organization
    return not repo.owner.is_organization


def _owner_name_matches(repo: Repository, filters: FilterConfiguration) -> bool:
    return filters.only_from is None or repo.owner.name in filters.only_from


def _language_matches(repo: Repository, filters: FilterConfiguration) -> bool:
    return filters.languages is None or repo.language in filters.languages


PREDICATES = (
    _visibility_matches,
    _owner_type_matches,
    _owner_name_matches,
    _language_matches,
)


def filter_repositories(
    repositories: Sequence[Repository],
    filters: FilterConfiguration,
) -> List[Repository]:
    """
    Keep the repositories matching every predicate, preserving input order.

    Owner names and languages are compared case-sensitively; languages are
    stored lowercased, so the configured names must be lowercase too.
    """
    return [
        repo
        for repo in repositories
        if all(predicate(repo, filters) for predicate in PREDICATES)
    ]
