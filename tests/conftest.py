"""
Shared fixtures for diagnosis tree tests: the battery tree and random acyclic trees.
"""

import copy
import random

import pytest

from diagnosis.core.tree.models import DiagnosisTree
from diagnosis.core.tree.validator import LINK_TYPES

BATTERY_TREE = {
    "treeId": "battery-no-start",
    "title": "Engine does not start",
    "category": "Electrical",
    "symptomTitle": "Starter silent when key is turned",
    "supportedModels": ["EV-100", "HX-200"],
    "startNodeId": "q1",
    "nodes": [
        {
            "id": "q1",
            "type": "question",
            "text": "Is the battery voltage below 12V?",
            "yesNextId": "step1",
            "noNextId": "r1",
        },
        {"id": "step1", "type": "step", "text": "Charge the battery for 30 minutes", "nextId": "r2"},
        {"id": "r1", "type": "result", "text": "Battery is fine", "actions": ["check battery"]},
        {
            "id": "r2",
            "type": "result",
            "text": "Starter fuse blown",
            "actions": ["replace fuse"],
            "links": [
                {"type": "manual", "label": "Fuse box layout", "urlOrRoute": "/manuals/hx-200#fuses"},
                {"type": "parts", "label": "Fuse 30A", "urlOrRoute": "https://parts.example.com/fuse-30a"},
            ],
        },
    ],
}


@pytest.fixture
def battery_document():
    """Valid tree document: q1 -yes-> step1 -> r2, q1 -no-> r1."""
    return copy.deepcopy(BATTERY_TREE)


@pytest.fixture
def battery_tree(battery_document):
    return DiagnosisTree.model_validate(battery_document)


@pytest.fixture
def make_document(battery_document):
    """Build a variant of the battery document with overrides."""

    def _make(**overrides):
        document = copy.deepcopy(battery_document)
        document.update(overrides)
        return document

    return _make


def build_random_document(seed: int, size: int = 12) -> dict:
    """Random acyclic tree: edges only point to later nodes, the last two nodes are results with one link each."""
    rng = random.Random(seed)
    ids = [f"n{i}" for i in range(size)]
    nodes = []
    for index, node_id in enumerate(ids):
        if index >= size - 2:
            nodes.append(
                {
                    "id": node_id,
                    "type": "result",
                    "text": f"Result {node_id}",
                    "actions": ["inspect"],
                    "links": [
                        {
                            "type": rng.choice(LINK_TYPES),
                            "label": f"Reference {node_id}",
                            "urlOrRoute": f"/manuals/{seed}#{node_id}",
                            "meta": {"page": str(rng.randint(1, 400))},
                        }
                    ],
                }
            )
            continue
        later = ids[index + 1 :]
        if rng.random() < 0.6:
            nodes.append(
                {
                    "id": node_id,
                    "type": "question",
                    "text": f"Question {node_id}?",
                    "yesNextId": rng.choice(later),
                    "noNextId": rng.choice(later),
                }
            )
        else:
            nodes.append({"id": node_id, "type": "step", "text": f"Step {node_id}", "nextId": rng.choice(later)})
    return {
        "treeId": f"random-{seed}",
        "title": "Random tree",
        "category": "Fuzz",
        "symptomTitle": f"Symptom {seed}",
        "supportedModels": ["EV-100"],
        "startNodeId": "n0",
        "nodes": nodes,
    }


@pytest.fixture
def random_documents():
    return [build_random_document(seed) for seed in range(25)]
