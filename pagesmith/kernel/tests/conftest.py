"""
Kernel test configuration.

Shared document fixtures. Ids are fixed strings so assertions can address
nodes directly; ids minted by the kernel start with "el_".
"""

import copy

import pytest

SAMPLE_TREE = [
    {"id": "h1", "type": "heading", "settings": {"text": "Welcome!", "tag": "h1"}},
    {
        "id": "cols",
        "type": "two-columns",
        "settings": {"columns": 2},
        "children": [
            {
                "id": "c1",
                "type": "column",
                "settings": {},
                "children": [{"id": "t1", "type": "text", "settings": {"text": "Left"}}],
            },
            {
                "id": "c2",
                "type": "column",
                "settings": {},
                "children": [
                    {"id": "b1", "type": "button", "settings": {"text": "Go", "url": "https://example.com"}},
                ],
            },
        ],
    },
    {"id": "d1", "type": "divider", "settings": {}},
]


@pytest.fixture
def sample_tree():
    """Heading, a two-column layout (text | button), divider."""
    return copy.deepcopy(SAMPLE_TREE)


@pytest.fixture
def flat_tree():
    """Three top-level text nodes a, b, c."""
    return [
        {"id": "a", "type": "text", "settings": {"text": "A"}},
        {"id": "b", "type": "text", "settings": {"text": "B"}},
        {"id": "c", "type": "text", "settings": {"text": "C"}},
    ]
