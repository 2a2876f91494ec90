"""Rendering of scan results as monitoring agent XML.

Rendering is a pure function of an already computed ScanResult. Text is
wrapped in CDATA sections; a ``]]>`` inside the text is split across two
sections so it cannot terminate the enclosing one.
"""

from __future__ import annotations

import sys
from typing import TextIO

from .models import OutputMode, ScanResult


def cdata(text: str) -> str:
    return "<![CDATA[" + text.replace("]]>", "]]]]><![CDATA[>") + "]]>"


def render_module(result: ScanResult, module_name: str) -> str:
    """Render one async_string module with a data entry per match group."""
    parts = [
        "<module>",
        f"<name>{cdata(module_name)}</name>",
        f"<type>{cdata('async_string')}</type>",
        "<datalist>",
    ]
    for group in result.groups:
        value = "\n".join(group.lines)
        parts.append(f"<data><value>{cdata(value)}</value></data>")
    parts += ["</datalist>", "</module>"]
    return "\n".join(parts) + "\n"


def render_log_module(result: ScanResult, module_name: str) -> str:
    """Render the lines of every match group concatenated in one log module."""
    content = "\n".join(line for group in result.groups for line in group.lines)
    return (
        "<log_module>\n"
        f"<source>{cdata(module_name)}</source>\n"
        f"<data>{cdata(content)}</data>\n"
        "</log_module>\n"
    )


def render_summary(result: ScanResult, module_name: str) -> str:
    """Render the match count as a generic_data module named ``<module>_count``."""
    return (
        "<module>\n"
        f"<name>{cdata(module_name + '_count')}</name>\n"
        f"<type>{cdata('generic_data')}</type>\n"
        f"<data>{cdata(str(result.total_matches))}</data>\n"
        "</module>\n"
    )


def render(
    result: ScanResult,
    module_name: str,
    mode: OutputMode = OutputMode.MODULE,
    summary: bool = False,
) -> str:
    """Render a scan result.

    Args:
        result: Scan result to render.
        module_name: Module name reported to the agent.
        mode: Aggregate module or raw log module output.
        summary: Whether to append the match count module.

    Returns:
        The XML text, empty if there is nothing to report.
    """
    output = ""
    if result.groups:
        if OutputMode(mode) is OutputMode.LOG_MODULE:
            output += render_log_module(result, module_name)
        else:
            output += render_module(result, module_name)
    if summary:
        output += render_summary(result, module_name)
    return output


def write_output(text: str, stream: TextIO | None = None) -> None:
    """Write rendered text to a stream, standard output by default."""
    if not text:
        return
    stream = stream if stream is not None else sys.stdout
    stream.write(text)
    stream.flush()
