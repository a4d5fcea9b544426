"""
Pytest configuration and fixtures for widget_flow testing.
"""

import shutil
import tempfile
from pathlib import Path

import pytest

from widget_flow.core.config import WidgetFlowConfig
from widget_flow.core.emitter import WidgetEmitter
from widget_flow.core.treesitter import parse_component
from widget_flow.core.widget_builder import WidgetTreeBuilder


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def config():
    """Default configuration."""
    return WidgetFlowConfig()


@pytest.fixture
def parse():
    """Parse source text into a ParsedSource (TSX grammar unless the path says otherwise)."""
    def _parse(source: str, file_path: str = "Component.tsx"):
        return parse_component(source, file_path)
    return _parse


@pytest.fixture
def builder(config):
    """Create a WidgetTreeBuilder with the static mapping table."""
    return WidgetTreeBuilder(config=config)


@pytest.fixture
def emitter():
    return WidgetEmitter()


@pytest.fixture
def lower_jsx(parse, builder):
    """Lower the first JSX element found in ``jsx`` wrapped in a component."""
    def _lower(jsx: str):
        parsed = parse(f"export default function Sample() {{\n  return (\n    {jsx}\n  );\n}}\n")
        return builder.build(parsed).root
    return _lower


@pytest.fixture
def sample_counter_component():
    """Functional component with state, an effect and handlers."""
    return '''
import React, { useState, useEffect } from 'react';
import { Button } from './Button';

interface CounterProps {
  label: string;
  step?: number;
}

export default function Counter({ label, step = 1 }: CounterProps) {
  const [count, setCount] = useState(0);
  const [name, setName] = useState('x');

  useEffect(() => {
    fetchData();
    return () => {};
  }, [count]);

  const handleClick = () => {
    setCount(count + step);
  };

  return (
    <div className="counter">
      <h1>{label}</h1>
      <p>Count is {count}</p>
      <button onClick={handleClick}>Increment</button>
      <Button title={name} onPress={() => setName('y')} />
    </div>
  );
}
'''


@pytest.fixture
def sample_class_component():
    """Class component with constructor state and lifecycle methods."""
    return '''
import React from 'react';

class Profile extends React.Component {
  constructor(props) {
    super(props);
    this.state = { loading: true };
  }

  componentDidMount() {
    this.load();
  }

  componentWillUnmount() {}

  render() {
    return (
      <section>
        <img src="https://example.com/a.png" alt="Avatar" />
      </section>
    );
  }
}

export default Profile;
'''
