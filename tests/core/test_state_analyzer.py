"""
Unit tests for StateAnalyzer.
"""

import json

import pytest

from widget_flow.core.models import (
    CallbackHook,
    ComponentUsage,
    ContextHook,
    CustomHook,
    EffectHook,
    MemoHook,
    ReducerHook,
    RefHook,
    StateHook,
    to_jsonable,
)
from widget_flow.core.state_analyzer import StateAnalyzer, analyze_state


class TestHooks:
    """Test cases for hook extraction."""

    def test_state_hook_setter_synthesis(self, parse):
        """Test a missing setter slot is synthesized from the variable name."""
        analysis = analyze_state(parse("function A() { const [x] = useState('x'); return <div />; }"))
        hook = analysis.hooks[0]
        assert isinstance(hook, StateHook)
        assert hook.variable == "x"
        assert hook.setter == "setX"
        assert hook.initial_value == "x"
        assert hook.inferred_type == "string"

    def test_state_hook_defaults(self, parse):
        """Test a bare useState call falls back to state/setState."""
        analysis = analyze_state(parse("function A() { useState(); return <div />; }"))
        hook = analysis.hooks[0]
        assert (hook.variable, hook.setter) == ("state", "setState")
        assert hook.initial_value is None
        assert hook.inferred_type == "unknown"

    def test_state_hook_types(self, parse):
        """Test inferred types of literal initializers."""
        source = """
function A() {
  const [n, setN] = useState(0);
  const [b, setB] = useState(false);
  const [items, setItems] = useState([]);
  const [obj, setObj] = useState({});
  const [v, setV] = useState(compute());
  return <div />;
}
"""
        hooks = analyze_state(parse(source)).hooks_of_kind("state")
        assert [(h.variable, h.inferred_type) for h in hooks] == [
            ("n", "number"),
            ("b", "boolean"),
            ("items", "array"),
            ("obj", "object"),
            ("v", "unknown"),
        ]
        assert hooks[2].initial_value == "[]"
        assert hooks[4].initial_value == "compute()"

    def test_effect_hook(self, parse, sample_counter_component):
        """Test effect dependencies, cleanup and side effects."""
        effect = analyze_state(parse(sample_counter_component)).hooks_of_kind("effect")[0]
        assert isinstance(effect, EffectHook)
        assert effect.dependencies == ("count",)
        assert effect.has_cleanup is True
        assert effect.side_effects == ("api-call",)
        assert effect.hook_name == "useEffect"
        assert effect.location.line > 1

    def test_layout_effect_without_cleanup(self, parse):
        source = """
function A() {
  useLayoutEffect(() => {
    router.push('/next');
    setReady(true);
  });
  return <div />;
}
"""
        effect = analyze_state(parse(source)).hooks[0]
        assert effect.hook_name == "useLayoutEffect"
        assert effect.has_cleanup is False
        assert effect.dependencies == ()
        assert effect.side_effects == ("navigation", "state-update")

    def test_other_builtin_hooks(self, parse):
        source = """
function A() {
  const theme = useContext(ThemeContext);
  const inputRef = useRef(null);
  const total = useMemo(() => a + b, [a, b]);
  const onSave = useCallback(() => save(), []);
  const [state, dispatch] = useReducer(reducer, { count: 0 });
  return <div />;
}
"""
        hooks = analyze_state(parse(source)).hooks
        assert isinstance(hooks[0], ContextHook) and hooks[0].context_name == "ThemeContext"
        assert isinstance(hooks[1], RefHook) and hooks[1].name == "inputRef" and hooks[1].initial_value is None
        assert isinstance(hooks[2], MemoHook) and hooks[2].dependencies == ("a", "b")
        assert isinstance(hooks[3], CallbackHook) and hooks[3].dependencies == ()
        assert isinstance(hooks[4], ReducerHook)
        assert hooks[4].reducer == "reducer"
        assert hooks[4].initial_state == "{}"

    def test_custom_hooks(self, parse):
        """Test custom hooks need a same-file definition."""
        source = """
function useToggle(initial) { return useState(initial); }
function A() {
  const a = useToggle(false);
  const b = useToggle(true);
  const c = useExternal();
  return <div />;
}
"""
        custom = analyze_state(parse(source)).hooks_of_kind("custom")
        assert len(custom) == 1
        assert isinstance(custom[0], CustomHook)
        assert custom[0].name == "useToggle"
        assert custom[0].definition.line == 2
        assert len(custom[0].usages) == 2


class TestProps:
    """Test cases for prop extraction."""

    def test_destructured_props_with_interface(self, parse, sample_counter_component):
        """Test interface types and optionality win over destructuring."""
        props = {p.name: p for p in analyze_state(parse(sample_counter_component)).props}
        assert props["label"].type == "string"
        assert props["label"].required is True
        assert props["step"].type == "number"
        assert props["step"].required is False
        assert props["step"].default_value == 1
        assert len(props["label"].usage_locations) == 1

    def test_rest_and_interface_only_members(self, parse):
        source = """
type CardProps = { title: string; footer?: string };
const Card = ({ title, ...rest }: CardProps) => <div>{title}</div>;
"""
        props = {p.name: p for p in analyze_state(parse(source)).props}
        assert props["...rest"].type == "object"
        assert props["...rest"].required is False
        assert props["footer"].type == "string"
        assert props["footer"].required is False
        assert props["title"].required is True

    def test_props_identifier(self, parse):
        """Test a plain `props` parameter is one object record."""
        props = analyze_state(parse("function A(props) { return <div>{props.x}</div>; }")).props
        assert len(props) == 1
        assert props[0].name == "props"
        assert props[0].type == "object"

    def test_anonymous_default_export_props(self, parse):
        props = analyze_state(parse("export default function ({ title }) { return <h1>{title}</h1>; }")).props
        assert [p.name for p in props] == ["title"]
        assert props[0].required is True

    def test_class_components_have_no_parameter_props(self, parse, sample_class_component):
        assert analyze_state(parse(sample_class_component)).props == ()


class TestStateVariables:
    """Test cases for state reads, updates and prop passing."""

    def test_reads_updates_and_passing(self, parse, sample_counter_component):
        variables = {v.name: v for v in analyze_state(parse(sample_counter_component)).state_variables}
        count = variables["count"]

        assert count.setter_name == "setCount"
        assert count.initial_value == 0
        assert len(count.read_locations) == 3
        assert {read.context for read in count.read_locations} == {"call", "jsx"}
        assert len(count.update_locations) == 1

        name = variables["name"]
        assert len(name.update_locations) == 1
        assert [(p.host_component, p.prop_name) for p in name.passed_as_props] == [("Button", "title")]

    def test_binding_is_not_a_read(self, parse):
        source = "function A() { const [open, setOpen] = useState(false); return <div />; }"
        variable = analyze_state(parse(source)).state_variables[0]
        assert variable.read_locations == ()


class TestEventHandlers:
    """Test cases for event handler analysis."""

    def test_identifier_and_inline_handlers(self, parse, sample_counter_component):
        handlers = analyze_state(parse(sample_counter_component)).event_handlers
        by_event = {h.event_type: h for h in handlers}

        assert by_event["onClick"].name == "handleClick"
        assert by_event["onClick"].actions == ("setState",)
        assert by_event["onPress"].name == "inline"
        assert by_event["onPress"].actions == ("setState",)

    def test_api_navigation_and_state_usage(self, parse):
        source = """
function A() {
  const [query, setQuery] = useState('');
  async function submit() {
    await api.search(query);
    navigate('/results');
  }
  return <form onSubmit={submit} />;
}
"""
        handler = analyze_state(parse(source)).event_handlers[0]
        assert handler.name == "submit"
        assert handler.actions == ("apiCall", "navigation")
        assert handler.uses_state == ("query",)

    def test_unknown_handler(self, parse):
        """Test handlers defined elsewhere still produce a record."""
        handler = analyze_state(parse("const A = () => <a onClick={props.go} />;")).event_handlers[0]
        assert handler.name == "props.go"
        assert handler.actions == ()


class TestCompositionAndLifecycle:
    """Test cases for component usage and class lifecycle."""

    def test_composition(self, parse, sample_counter_component):
        usage = analyze_state(parse(sample_counter_component)).composition[0]
        assert usage.component_name == "Button"
        assert usage.props == {"title": "name", "onPress": "[function]"}
        assert usage.callbacks == ("onPress",)

    def test_usage_props_are_read_only(self, parse, sample_counter_component):
        usage = analyze_state(parse(sample_counter_component)).composition[0]
        with pytest.raises(TypeError):
            usage.props["title"] = "other"
        assert json.loads(json.dumps(to_jsonable(usage)))["props"] == {"title": "name", "onPress": "[function]"}

    def test_usage_props_are_copied(self):
        props = {"title": "name"}
        usage = ComponentUsage(component_name="Button", props=props)
        props["extra"] = "late"
        assert dict(usage.props) == {"title": "name"}

    def test_lifecycle(self, parse, sample_class_component):
        lifecycle = analyze_state(parse(sample_class_component)).lifecycle
        assert lifecycle.methods == ("componentDidMount", "componentWillUnmount")
        assert lifecycle.has_constructor is True
        assert lifecycle.has_state_init is True
        assert lifecycle.state_init == "{}"

    def test_class_field_state(self, parse):
        source = "class A extends Component { state = { open: false }; render() { return <div />; } }"
        lifecycle = analyze_state(parse(source)).lifecycle
        assert lifecycle.has_constructor is False
        assert lifecycle.has_state_init is True

    def test_to_dict(self, parse, sample_counter_component):
        data = StateAnalyzer().analyze(parse(sample_counter_component)).to_dict()
        assert data["hooks"][0]["kind"] == "state"
        assert data["props"][0]["name"] == "label"
