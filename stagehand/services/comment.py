"""Render the body of the preview comment posted on pull requests."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from jinja2 import Template


SUCCESSFUL_BUILD_TEMPLATE = Template(
    """
:sparkles: :mag: :sparkles:

{% if previews|length == 1 -%}
{% for content_root, urls in previews -%}
{% if urls -%}
Your preview is available at {{ urls|join(", ") }}.
{%- else -%}
Your content was staged, but `{{ content_root }}` is not mapped to any URL yet.
{%- endif %}
{%- endfor %}
{%- else -%}
Your previews are available at:
{% for content_root, urls in previews %}
* `{{ content_root }}`: {% if urls %}{{ urls|join(", ") }}{% else %}not mapped to any URL{% endif %}
{%- endfor %}
{%- endif %}

{{ footer }}
""".strip()
)

DEFAULT_FOOTER = "_Previews are rebuilt each time this pull request is updated._"


@dataclass(slots=True)
class CommentFormatter:
    """Produce Markdown comment bodies for GitHub."""

    footer: str = DEFAULT_FOOTER

    def for_successful_build(self, presented_urls: Mapping[str, Sequence[str]]) -> str:
        """Return a comment linking to every staged preview."""

        previews = [(content_root, list(urls)) for content_root, urls in presented_urls.items()]
        return SUCCESSFUL_BUILD_TEMPLATE.render(previews=previews, footer=self.footer).strip() + "\n"
