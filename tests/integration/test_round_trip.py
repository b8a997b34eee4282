"""Serializer/parser agreement on documents produced by real editing sessions."""

import random

import pytest

from mjml_toolkit.core import templates, tree
from mjml_toolkit.core.generators.mjml_builder import generate_mjml
from mjml_toolkit.core.importers.mjml_importer import parse_mjml
from mjml_toolkit.core.models import DocumentContext, FontDefinition, HeadSettings


HEAD = HeadSettings(
    title="Spring sale",
    preview="Up to 50% off",
    fonts=(FontDefinition("Roboto", "https://fonts.example/css?family=Roboto"),),
    styles=".promo a { color: #f00; }",
    breakpoint="480px",
)


def _assert_round_trip(document, schema, head=None):
    markup = generate_mjml(document, head, schema)
    parsed = parse_mjml(markup, schema)
    assert parsed.document == document
    if head is not None:
        assert parsed.head_settings == head
    # Formatting is stable after one pass
    assert generate_mjml(parsed.document, parsed.head_settings, schema) == markup


def test_sample_document(schema, sample_document):
    _assert_round_trip(sample_document, schema, HEAD)


@pytest.mark.parametrize("template_id", sorted(templates.TEMPLATE_INDEX))
def test_templates(schema, template_id):
    _assert_round_trip(templates.get_template(template_id).document, schema, HEAD)


@pytest.mark.parametrize("component_type", [
    "mj-section", "mj-wrapper", "mj-hero", "mj-text", "mj-image", "mj-button", "mj-divider",
    "mj-spacer", "mj-table", "mj-raw", "mj-social", "mj-navbar", "mj-accordion", "mj-carousel",
])
def test_every_component_default(schema, component_type):
    document = templates.empty_document(schema)
    ctx = DocumentContext(document=document)
    node = schema.create_node(component_type)
    ctx.document = tree.insert_child(ctx.document, ctx.document.id, node)
    _assert_round_trip(ctx.document, schema)


def test_random_editing_session(schema, service):
    rng = random.Random(2024)
    ctx = DocumentContext(document=templates.empty_document(schema))
    creatable = [t for t in schema.types() if t != "mj-body"]

    for step in range(120):
        nodes = [node for _depth, node in tree.walk(ctx.document)]
        containers = [
            n for n in nodes
            if schema.accepts_children(n.type) and not schema.is_self_closing(n.type)
        ]
        movable = [n for n in nodes if n.id != ctx.document.id]
        action = rng.choice(["add", "add", "move", "duplicate", "remove", "attrs"])

        if action == "add" or not movable:
            parent = rng.choice(containers)
            service.add_node(ctx, parent.id, rng.choice(creatable), rng.randint(0, len(parent.children)))
        elif action == "move":
            parent = rng.choice(containers)
            service.move_node(ctx, rng.choice(movable).id, parent.id, rng.randint(0, len(parent.children)))
        elif action == "duplicate":
            service.duplicate_node(ctx, rng.choice(movable).id)
        elif action == "remove" and len(movable) > 5:
            service.remove_node(ctx, rng.choice(movable).id)
        else:
            service.update_attributes(ctx, rng.choice(nodes).id, {"css-class": f"step-{step}"})

        assert tree.ids_unique(ctx.document)

    _assert_round_trip(ctx.document, schema)


def test_template_loads_never_share_ids(service):
    template = templates.get_template("newsletter")
    first, second = DocumentContext(), DocumentContext()
    service.load_template(first, template)
    service.load_template(second, template)
    ids = tree.collect_ids(first.document) + tree.collect_ids(second.document) + tree.collect_ids(template.document)
    assert len(ids) == len(set(ids))
