from dataclasses import dataclass, field


@dataclass
class Bookmarks:
    """
    Questions flagged for later, in the order they were flagged.

    Attributes:
        question_indices: Bookmarked question identifiers, no duplicates.
        created_at: Epoch ms each bookmark was added, keyed by question index.
    """

    question_indices: list[int] = field(default_factory=list)
    created_at: dict[int, int] = field(default_factory=dict)
