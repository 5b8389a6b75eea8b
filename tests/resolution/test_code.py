"""Tests for WGSL code templates."""

import pytest

from pywgsl.data import f32
from pywgsl.errors import ConfigurationError, ResolutionError
from pywgsl.resolution.code import code, split_template
from pywgsl.resolution.slot import slot


def test_split_template():
    """Test splitting a template into text and placeholders."""
    parts = split_template("a * $scale + ${offset}.x")
    assert parts == ["a * ", ("scale",), " + ", ("offset",), ".x"]


def test_escaped_dollar():
    """Test that $$ produces a literal dollar sign."""
    assert split_template("cost$$") == ["cost", "$"]


def test_invalid_placeholder():
    """Test that a dangling $ is rejected when the template is built."""
    with pytest.raises(ConfigurationError):
        code("1.0 + $ 2.0")


def test_code_resolves_externals(ctx):
    """Test inline snippets resolve their externals."""
    scale = slot(2.0, label="scale")
    snippet = code("x * $scale + $bias", scale=scale, bias=f32(0.5))

    assert ctx.resolve(snippet) == "x * 2.0 + f32(0.5)"
    assert ctx.declarations == []


def test_code_missing_external(ctx):
    """Test a snippet referring to an unknown name."""
    with pytest.raises(ResolutionError, match="missing"):
        ctx.resolve(code("$missing"))


def test_external_error_names_the_user(ctx):
    """Test that errors without a label point at the node using the external."""
    snippet = code("$bad", bad=object()).named("snippet")

    with pytest.raises(ResolutionError, match="at 'snippet'"):
        ctx.resolve(snippet)
