"""Message-tree walks over an in-memory arena of message rows.

A conversation is a forest: every message with a null parent_id starts an
independent thread, and every other message points at an earlier one. Rows
are plain dicts as read from the messages table, already in creation order
(created_at, then insertion order). Nothing here touches the database, so
the service layer loads rows once per request and every walk runs against
the same MessageIndex.
"""

from collections import defaultdict, deque

from threadchat.models import ContextMode


class MessageIndex:
    """Arena of message rows indexed by id, with a parent -> children map.

    Children lists keep the creation order of the input rows.
    """

    def __init__(self, rows: list[dict]) -> None:
        self.rows = rows
        self.by_id: dict[str, dict] = {}
        self.children: dict[str | None, list[dict]] = defaultdict(list)
        for row in rows:
            self.by_id[row["message_id"]] = row
            self.children[row["parent_id"]].append(row)

    def get(self, message_id: str) -> dict | None:
        return self.by_id.get(message_id)

    def roots(self) -> list[dict]:
        """Top-level messages (thread roots), in creation order."""
        return list(self.children.get(None, []))

    def ancestor_chain(self, message_id: str) -> list[dict]:
        """Path from the thread root down to message_id, inclusive.

        Follows parent links upward until a null parent (or a parent outside
        the index), then reverses. Unknown ids give an empty list.
        """
        chain: list[dict] = []
        seen: set[str] = set()
        current = self.by_id.get(message_id)
        while current is not None and current["message_id"] not in seen:
            chain.append(current)
            seen.add(current["message_id"])
            parent_id = current["parent_id"]
            current = self.by_id.get(parent_id) if parent_id else None
        chain.reverse()
        return chain

    def descendants(self, message_id: str) -> list[dict]:
        """Every message reachable through child links, breadth-first.

        The starting message itself is not included.
        """
        out: list[dict] = []
        queue = deque(self.children.get(message_id, []))
        while queue:
            current = queue.popleft()
            out.append(current)
            queue.extend(self.children.get(current["message_id"], []))
        return out

    def count_descendants(self, message_id: str) -> int:
        return len(self.descendants(message_id))


def linear_context(index: MessageIndex, target_id: str) -> list[dict]:
    """Every message created at or before the target, in creation order.

    Tree structure is ignored entirely.
    """
    target = index.get(target_id)
    if target is None:
        return []
    cutoff = target["created_at"]
    return [row for row in index.rows if row["created_at"] <= cutoff]


def thread_context(index: MessageIndex, target_id: str) -> list[dict]:
    """Prior thread roots followed by the target's own branch.

    Part one is every thread root created at or before the target's thread
    root (the target's root included), in creation order. Part two is the
    ancestor chain from that root down to the target, minus the root, which
    part one already holds.
    """
    target = index.get(target_id)
    if target is None:
        return []
    thread_root = index.get(target["thread_root_id"])
    if thread_root is None:
        return []

    cutoff = thread_root["created_at"]
    prior_roots = [row for row in index.roots() if row["created_at"] <= cutoff]
    branch = [
        row
        for row in index.ancestor_chain(target_id)
        if row["message_id"] != thread_root["message_id"]
    ]
    return prior_roots + branch


def context_rows(index: MessageIndex, target_id: str, mode: ContextMode) -> list[dict]:
    """Dispatch to the context policy for mode."""
    if mode == "linear":
        return linear_context(index, target_id)
    return thread_context(index, target_id)


def to_prompt(rows: list[dict]) -> list[dict[str, str]]:
    """Strip rows down to the role/content pairs a completion API takes."""
    return [{"role": row["role"], "content": row["content"]} for row in rows]


def build_timeline(index: MessageIndex) -> list[dict]:
    """The main view: one entry per top-level user message.

    Each entry carries the root, its earliest assistant child (the inline
    reply), the number of messages below the root, and the thread tail,
    i.e. the message a new thread reply should hang from: the last message
    in breadth-first order, or the root when the thread is empty.
    """
    entries: list[dict] = []
    for root in index.roots():
        if root["role"] != "user":
            continue
        below = index.descendants(root["message_id"])
        reply = next(
            (c for c in index.children.get(root["message_id"], []) if c["role"] == "assistant"),
            None,
        )
        entries.append({
            "root": root,
            "reply": reply,
            "reply_count": len(below),
            "tail_id": below[-1]["message_id"] if below else root["message_id"],
        })
    return entries
