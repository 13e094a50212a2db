"""Longest-path estimate used for "step N of M" progress display."""

from __future__ import annotations

from typing import Dict, List, Optional, Set

from diagnosis.core.tree.models import DiagnosisTree, node_successors


class _Frame:
    __slots__ = ("node_id", "successors", "index", "best")

    def __init__(self, node_id: str, successors: List[str]):
        self.node_id = node_id
        self.successors = successors
        self.index = 0
        self.best = 0


def estimate_max_depth(tree: DiagnosisTree) -> int:
    """
    Number of nodes on the longest path from the start node to a terminal node.

    Results count 1, steps ``1 + depth(next)``, questions
    ``1 + max(depth(yes), depth(no))``. Missing targets count 1. A node that
    is revisited while still on the stack counts 1 and is not memoized, so
    cyclic or otherwise malformed trees still terminate.

    Iterative so long chains cannot exhaust the interpreter stack.
    """
    memo: Dict[str, int] = {}
    on_stack: Set[str] = set()

    def known_depth(node_id: str) -> Optional[int]:
        if node_id in memo:
            return memo[node_id]
        if node_id in on_stack:
            return 1
        if tree.get_node(node_id) is None:
            memo[node_id] = 1
            return 1
        return None

    start_id = tree.start_node_id
    initial = known_depth(start_id)
    if initial is not None:
        return initial

    stack = [_Frame(start_id, node_successors(tree.get_node(start_id)))]
    on_stack.add(start_id)

    while stack:
        frame = stack[-1]
        if frame.index < len(frame.successors):
            child_id = frame.successors[frame.index]
            frame.index += 1
            depth = known_depth(child_id)
            if depth is None:
                stack.append(_Frame(child_id, node_successors(tree.get_node(child_id))))
                on_stack.add(child_id)
            else:
                frame.best = max(frame.best, depth)
            continue

        stack.pop()
        on_stack.discard(frame.node_id)
        depth = 1 + frame.best
        memo[frame.node_id] = depth
        if stack:
            stack[-1].best = max(stack[-1].best, depth)

    return memo[start_id]


__all__ = ["estimate_max_depth"]
