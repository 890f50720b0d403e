"""Traversal of the account parent/child forest."""

import logging
from collections import deque
from sqlalchemy.orm import Session

from servicedesk.repositories.account_repository import AccountRepository

logger = logging.getLogger(__name__)


class AccountHierarchy:
    """
    Walks account hierarchies in both directions.

    The schema does not enforce acyclicity of ``parent_id``, so every walk
    keeps a visited set: a corrupted cycle ends the walk instead of looping.
    Descendant walks are breadth-first, one query per tree level.
    """

    def __init__(self, db: Session):
        self.db = db
        self.account_repo = AccountRepository(db)

    def descendant_ids(self, account_id: int) -> list[int]:
        """
        Get every descendant of an account (root excluded).

        Args:
            account_id: Root account ID

        Returns:
            Descendant IDs in breadth-first order
        """
        return self._walk_down([account_id], include_roots=False)

    def subtree_ids(self, account_id: int) -> list[int]:
        """Get an account and all its descendants, root first"""
        return self._walk_down([account_id], include_roots=True)

    def subtrees_ids(self, account_ids: list[int]) -> list[int]:
        """Get the union of several subtrees, each root included once"""
        return self._walk_down(account_ids, include_roots=True)

    def ancestor_ids(self, account_id: int) -> list[int]:
        """
        Get the parent chain of an account, nearest parent first.

        Args:
            account_id: Starting account ID

        Returns:
            Ancestor IDs (empty for a root or unknown account)
        """
        ancestors: list[int] = []
        visited = {account_id}
        parent_id = self.account_repo.get_parent_id(account_id)
        while parent_id is not None:
            if parent_id in visited:
                logger.warning(
                    "Cycle detected in account hierarchy at account %s (walking up from %s)",
                    parent_id,
                    account_id,
                )
                break
            visited.add(parent_id)
            ancestors.append(parent_id)
            parent_id = self.account_repo.get_parent_id(parent_id)
        return ancestors

    def _walk_down(self, root_ids: list[int], include_roots: bool) -> list[int]:
        roots: list[int] = []
        for root_id in root_ids:
            if root_id not in roots:
                roots.append(root_id)

        visited = set(roots)
        ordered = list(roots) if include_roots else []
        frontier = deque([roots])
        while frontier:
            level = frontier.popleft()
            next_level: list[int] = []
            for child_id, parent_id in self.account_repo.get_child_ids(level):
                if child_id in visited:
                    # A root nested under another root is not a cycle
                    if child_id not in roots or not include_roots:
                        logger.warning(
                            "Cycle detected in account hierarchy: account %s revisited via %s",
                            child_id,
                            parent_id,
                        )
                    continue
                visited.add(child_id)
                ordered.append(child_id)
                next_level.append(child_id)
            if next_level:
                frontier.append(next_level)
        return ordered
