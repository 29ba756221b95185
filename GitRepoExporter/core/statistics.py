"""
Classification of the fetched repositories into summary statistics.
"""

from collections import Counter
from typing import Iterable, List, Sequence

from core.entities import Occurrence, Repository, Statistics


def rank_occurrences(values: Iterable[str]) -> List[Occurrence]:
    """
    Count each distinct value and order the result by count, descending.

    Counter keeps first-seen order and sorted() is stable, so ties keep the
    order in which the values first appeared.
    """
    counts = Counter(values)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [Occurrence(name=name, count=count) for name, count in ranked]


def categorize_repositories(repositories: Sequence[Repository]) -> Statistics:
    """
    Build visibility buckets and ranked owner/language tables in one pass.

    Args:
        repositories: Repositories as returned by the paginator

    Returns:
        Statistics for the given repositories (all empty for no input)
    """
    public: List[str] = []
    private: List[str] = []
    users: List[str] = []
    organizations: List[str] = []
    languages: List[str] = []

    for repo in repositories:
        if repo.is_private:
            private.append(repo.full_name)
        else:
            public.append(repo.full_name)

        if repo.owner.is_organization:
            organizations.append(repo.owner.name)
        else:
            users.append(repo.owner.name)

        languages.append(repo.language)

    return Statistics(
        public=tuple(public),
        private=tuple(private),
        users=tuple(rank_occurrences(users)),
        organizations=tuple(rank_occurrences(organizations)),
        languages=tuple(rank_occurrences(languages)),
    )
