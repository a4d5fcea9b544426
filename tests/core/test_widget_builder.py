"""
Unit tests for WidgetTreeBuilder lowering.
"""

import pytest

from widget_flow.core.config import WidgetFlowConfig
from widget_flow.core.emitter import emit
from widget_flow.core.mappings import ELEMENT_MAPPINGS, MAPPING_TABLE_VERSION, build_mapping_table
from widget_flow.core.models import DiagnosticKind
from widget_flow.core.structure_analyzer import analyze_structure
from widget_flow.core.widget_builder import WidgetTreeBuilder, class_name_text, lower_to_widget_tree

MAPPING_GOLDENS = [
    ("div", "Container()"),
    ("section", "Container()"),
    ("article", "Container()"),
    ("header", "Container()"),
    ("footer", "Container()"),
    ("nav", "Container()"),
    ("main", "Scaffold()"),
    ("button", "ElevatedButton()"),
    ("input", "TextField()"),
    ("textarea", "TextField(\n  maxLines: null\n)"),
    ("img", "Image()"),
    ("a", "GestureDetector(\n  onTap: () { /* TODO: Navigate */ }\n)"),
    ("p", "Text(\n  ''\n)"),
    ("h1", "Text(\n  '',\n  style: Theme.of(context).textTheme.headlineLarge\n)"),
    ("h2", "Text(\n  '',\n  style: Theme.of(context).textTheme.headlineMedium\n)"),
    ("h3", "Text(\n  '',\n  style: Theme.of(context).textTheme.headlineSmall\n)"),
    ("h4", "Text(\n  '',\n  style: Theme.of(context).textTheme.titleLarge\n)"),
    ("h5", "Text(\n  '',\n  style: Theme.of(context).textTheme.titleMedium\n)"),
    ("h6", "Text(\n  '',\n  style: Theme.of(context).textTheme.titleSmall\n)"),
    ("span", "Text(\n  ''\n)"),
    ("strong", "Text(\n  '',\n  style: const TextStyle(fontWeight: FontWeight.bold)\n)"),
    ("em", "Text(\n  '',\n  style: const TextStyle(fontStyle: FontStyle.italic)\n)"),
    ("label", "Text(\n  ''\n)"),
    ("ul", "ListView()"),
    ("ol", "ListView()"),
    ("li", "ListTile()"),
    ("form", "Form()"),
    ("br", "SizedBox(\n  height: 10\n)"),
    ("hr", "Divider()"),
]


class TestMappingTable:
    """Test cases for the static element-mapping table."""

    def test_every_row_has_a_golden(self):
        assert {tag for tag, _ in MAPPING_GOLDENS} == set(ELEMENT_MAPPINGS)

    @pytest.mark.parametrize("tag,expected", MAPPING_GOLDENS)
    def test_row_golden(self, lower_jsx, tag, expected):
        """Test each mapped tag lowers and prints to its golden output."""
        assert emit(lower_jsx(f"<{tag} />")) == expected

    def test_table_is_read_only(self):
        with pytest.raises(TypeError):
            ELEMENT_MAPPINGS["video"] = ELEMENT_MAPPINGS["div"]

    def test_configured_override(self, lower_jsx):
        """Test extra mappings add rows and patch existing ones."""
        config = WidgetFlowConfig(
            extra_element_mappings={
                "video": {"target_tag": "VideoPlayer"},
                "section": {"target_tag": "Card"},
            }
        )
        table = build_mapping_table(config)
        assert table["video"].target_tag == "VideoPlayer"
        assert table["section"].target_tag == "Card"
        assert table["section"].has_default_child_slot is True
        assert ELEMENT_MAPPINGS["section"].target_tag == "Container"

    def test_unconfigured_table_is_static(self, config):
        assert build_mapping_table(config) is ELEMENT_MAPPINGS
        assert MAPPING_TABLE_VERSION


class TestTagResolution:
    """Test cases for custom and unknown tags."""

    def test_custom_component_passes_through(self, parse, builder):
        parsed = parse("export default () => <UserCard><p>Hi</p></UserCard>;")
        result = builder.build(parsed)
        assert result.root.target_tag == "UserCard"
        assert result.root.child.target_tag == "Text"
        assert result.custom_components == ("UserCard",)

    def test_dotted_custom_component(self, lower_jsx):
        assert lower_jsx("<Card.Header />").target_tag == "CardHeader"

    def test_unknown_lowercase_tag_falls_back(self, parse, builder):
        result = builder.build(parse("export default () => <video controls />;"))
        assert result.root.target_tag == "Container"
        assert "// TODO: Unmapped element <video>" in result.root.comments
        assert any(d.kind == DiagnosticKind.UNMAPPED_CONSTRUCT for d in result.diagnostics)


class TestAttributes:
    """Test cases for attribute lowering."""

    def test_on_click_on_button_and_other(self, lower_jsx):
        button = lower_jsx("<button onClick={go} />")
        div = lower_jsx("<div onClick={go} />")
        assert button.property_keys() == ("onPressed",)
        assert div.property_keys() == ("onTap",)

    def test_link_keeps_single_on_tap(self, lower_jsx):
        link = lower_jsx('<a href="/home" onClick={go}>Home</a>')
        assert link.property_keys() == ("onTap",)
        assert any("Navigate to" in comment for comment in link.comments)
        assert link.child.target_tag == "Text"

    def test_property_order_follows_source(self, lower_jsx):
        """Test properties keep attribute order."""
        node = lower_jsx('<input placeholder="Name" type="email" onChange={update} />')
        assert node.property_keys() == ("decoration", "keyboardType", "onChanged")
        assert node.find_property("decoration").value == "InputDecoration(hintText: 'Name')"
        assert node.find_property("keyboardType").value == "TextInputType.emailAddress"

    def test_password_input(self, lower_jsx):
        node = lower_jsx('<input type="password" />')
        assert node.find_property("obscureText").value == "true"

    def test_text_field_value_needs_controller(self, lower_jsx):
        node = lower_jsx("<input value={email} />")
        assert node.property_keys() == ()
        assert "// TODO: Use TextEditingController for value" in emit(node)

    @pytest.mark.parametrize(
        "attribute,expected",
        [
            ("disabled", "false"),
            ("disabled={true}", "false"),
            ("disabled={false}", "true"),
            ("disabled={busy}", "!busy"),
            ("disabled={a || b}", "!(a || b)"),
        ],
    )
    def test_disabled_becomes_enabled(self, lower_jsx, attribute, expected):
        node = lower_jsx(f"<button {attribute} />")
        assert node.find_property("enabled").value == expected

    def test_id_becomes_key(self, lower_jsx):
        node = lower_jsx('<div id="main-panel" />')
        assert node.find_property("key").value == "ValueKey('main-panel')"

    def test_image_sources(self, lower_jsx):
        network = lower_jsx('<img src="https://example.com/a.png" alt="Logo" />')
        asset = lower_jsx('<img src="assets/a.png" />')
        assert network.find_property("image").value == "NetworkImage('https://example.com/a.png')"
        assert network.find_property("semanticLabel").value == "'Logo'"
        assert asset.find_property("image").value == "AssetImage('assets/a.png')"

    def test_no_silent_attribute_loss(self, parse, builder):
        """Test attributes without an equivalent leave a comment and a diagnostic."""
        result = builder.build(parse("export default () => <div data-test=\"x\" aria-label={label} tabIndex={0} />;"))
        comments = "\n".join(result.root.comments)
        assert 'data-test: "x"' in comments
        assert "aria-label: label" in comments
        assert "tabIndex: 0" in comments
        unmapped = [d for d in result.diagnostics if d.kind == DiagnosticKind.UNMAPPED_CONSTRUCT]
        assert len(unmapped) == 3

    def test_spread_attributes(self, lower_jsx):
        node = lower_jsx("<div {...props} />")
        assert node.comments == ("// TODO: Spread attributes {...props}",)

    def test_multi_line_spread_is_one_comment_line(self, lower_jsx):
        node = lower_jsx("<div {...{\n  a: 1 }} />")
        assert node.comments == ("// TODO: Spread attributes {...{ a: 1 }}",)
        assert emit(node) == "Container(\n  // TODO: Spread attributes {...{ a: 1 }}\n)"

    def test_text_payload_leads_source_attributes(self, lower_jsx):
        """Test a text element puts its payload first and keeps attributes in source order."""
        node = lower_jsx('<p id="x" onClick={f}>Hi</p>')
        assert node.property_keys() == (None, "key", "onTap")
        assert node.properties[0].value == "'Hi'"
        assert node.find_property("key").value == "ValueKey('x')"


class TestClassName:
    """Test cases for className comments and the class-name side channel."""

    def test_string_class_names(self, parse, builder):
        result = builder.build(parse('export default () => <div className="card shadow"><p className="title" /></div>;'))
        assert result.root.comments == ("// TODO: Apply className: card shadow (styling)",)
        assert result.class_names == ("card", "shadow", "title")

    def test_template_literal(self, parse):
        expr = parse("x = `btn ${kind} large`").root
        template = next(n for n in _walk(expr) if n.type == "template_string")
        assert class_name_text(template) == "btn large"

    def test_concatenation_one_level(self, parse):
        """Test a simple `+` pair is joined and longer chains keep the last literal."""
        root = parse("a = 'x ' + 'y'; b = 'p' + 'q' + 'r';").root
        binaries = [n for n in _walk(root) if n.type == "binary_expression" and n.parent.type == "assignment_expression"]
        assert class_name_text(binaries[0]) == "x y"
        assert class_name_text(binaries[1]) == "r"

    def test_truncation(self, lower_jsx):
        long_name = " ".join(f"c{i}" for i in range(60))
        node = lower_jsx(f'<div className="{long_name}" />')
        comment = node.comments[0]
        text = comment[len("// TODO: Apply className: "):-len(" (styling)")]
        assert len(text) == 100
        assert text.endswith("...")

    def test_dynamic_class_name(self, lower_jsx):
        node = lower_jsx("<div className={styles.card} />")
        assert node.comments == ("// TODO: Apply className: styles.card (styling)",)

    def test_multi_line_class_name(self, lower_jsx):
        """Test a class list spanning lines stays on one comment line."""
        node = lower_jsx('<div className="flex\n  items-center"><hr /></div>')
        assert node.comments == ("// TODO: Apply className: flex items-center (styling)",)
        assert emit(node) == (
            "Container(\n"
            "  // TODO: Apply className: flex items-center (styling)\n"
            "  child: Divider()\n"
            ")"
        )


class TestChildren:
    """Test cases for child lowering and slot assignment."""

    def test_multiple_children_get_one_vertical_wrapper(self, lower_jsx):
        """Test a single-slot widget wraps several children in exactly one Column."""
        node = lower_jsx("<button><span>a</span><span>b</span></button>")
        assert node.target_tag == "ElevatedButton"
        assert node.child.target_tag == "Column"
        assert len(node.child.children) == 2
        tags = [n.target_tag for n in node.iter_nodes()]
        assert tags.count("Column") == 1
        assert "Row" not in tags

    def test_single_child_uses_slot(self, lower_jsx):
        node = lower_jsx("<div><hr /></div>")
        assert node.child.target_tag == "Divider"
        assert node.children is None

    def test_list_uses_children_collection(self, lower_jsx):
        node = lower_jsx("<ul><li>One</li><li>Two</li></ul>")
        assert node.child is None
        assert [entry.target_tag for entry in node.children] == ["ListTile", "ListTile"]
        assert node.children[0].child_key == "title"

    def test_main_uses_body_slot(self, lower_jsx):
        assert "body: Container()" in emit(lower_jsx("<main><div /></main>"))

    def test_text_payload(self, lower_jsx):
        node = lower_jsx("<p>\n  Hello   there\n  {name}\n  world\n</p>")
        assert node.properties[0].key is None
        assert node.properties[0].value == "'Hello there world'"
        assert node.comments == ("// TODO: Convert expression name",)

    def test_text_escaping(self, lower_jsx):
        node = lower_jsx("<span>It's $5</span>")
        assert node.properties[0].value == "'It\\'s \\$5'"

    def test_character_references_are_decoded(self, lower_jsx):
        node = lower_jsx("<p>Tom &amp; Jerry &lt;3 AT&amp;T</p>")
        assert node.properties[0].value == "'Tom & Jerry <3 AT&T'"

    def test_character_references_in_bare_text(self, lower_jsx):
        node = lower_jsx("<div>Fish &amp; Chips</div>")
        assert node.child.properties[0].value == "'Fish & Chips'"

    def test_inline_markup_in_text_is_flattened(self, lower_jsx):
        node = lower_jsx("<p>Hello <strong>World</strong></p>")
        assert node.properties[0].value == "'Hello World'"
        assert "// TODO: Inline <strong> flattened into text" in node.comments

    def test_whitespace_text_is_dropped(self, lower_jsx):
        node = lower_jsx("<div>\n    <hr />\n  </div>")
        assert node.child.target_tag == "Divider"

    def test_bare_text_becomes_text_widget(self, lower_jsx):
        assert emit(lower_jsx("<div>Hi</div>")) == "Container(\n  child: Text(\n    'Hi'\n  )\n)"

    def test_conditional_rendering(self, lower_jsx):
        node = lower_jsx("<div>{open && <p>x</p>}</div>")
        assert node.child.target_tag == "Container"
        assert node.child.comments[0].startswith("// TODO: Conditional rendering")

    def test_ternary_rendering(self, lower_jsx):
        node = lower_jsx("<div>{ok ? <p>y</p> : null}</div>")
        assert node.child.comments[0].startswith("// TODO: Conditional rendering")

    def test_map_rendering(self, lower_jsx):
        node = lower_jsx("<ul>{items.map(item => <li>{item}</li>)}</ul>")
        assert node.children[0].comments[0].startswith("// TODO: Array.map rendering")

    def test_other_expression(self, lower_jsx):
        node = lower_jsx("<div>{renderBody()}</div>")
        assert node.child.comments == ("// TODO: Convert expression renderBody(...)",)

    def test_leaf_children_are_dropped_with_comment(self, parse, builder):
        result = builder.build(parse("export default () => <input>ignored</input>;"))
        assert result.root.child is None
        assert any("children are not supported" in comment for comment in result.root.comments)
        assert any(d.kind == DiagnosticKind.UNMAPPED_CONSTRUCT for d in result.diagnostics)


class TestFragments:
    """Test cases for fragment lowering."""

    def test_empty_fragment(self, lower_jsx):
        assert emit(lower_jsx("<></>")) == "SizedBox.shrink()"

    def test_single_child_fragment(self, lower_jsx):
        assert lower_jsx("<><hr /></>").target_tag == "Divider"

    def test_multi_child_fragment(self, lower_jsx):
        node = lower_jsx("<><hr /><br /></>")
        assert node.target_tag == "Column"
        assert [entry.target_tag for entry in node.children] == ["Divider", "SizedBox"]


class TestRootLocation:
    """Test cases for locating the component's root JSX."""

    def test_named_component_root(self, parse):
        source = """
const Helper = () => <span />;
export function Main() { return <section />; }
"""
        parsed = parse(source)
        structure = analyze_structure(parsed)
        assert lower_to_widget_tree(parsed, structure).source_tag == "section"

    def test_class_render_root(self, parse, sample_class_component):
        parsed = parse(sample_class_component)
        widget = lower_to_widget_tree(parsed, analyze_structure(parsed))
        assert widget.source_tag == "section"
        assert widget.child.target_tag == "Image"

    def test_anonymous_default_export_root(self, parse):
        parsed = parse("export default function ({ title }) { return <h1>{title}</h1>; }")
        structure = analyze_structure(parsed)
        assert lower_to_widget_tree(parsed, structure).source_tag == "h1"

    def test_no_content_fallback(self, parse):
        parsed = parse("export default function Empty() { return null; }")
        builder = WidgetTreeBuilder()
        result = builder.build(parsed, analyze_structure(parsed))
        assert emit(result.root) == (
            "Scaffold(\n"
            "  body: Center(\n"
            "    child: Text(\n"
            "      'No content found'\n"
            "    )\n"
            "  )\n"
            ")"
        )
        assert any(d.kind == DiagnosticKind.STRUCTURAL_AMBIGUITY for d in result.diagnostics)


def _walk(node):
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))
