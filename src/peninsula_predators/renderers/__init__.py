"""Pure rendering functions: analysis results -> HTML strings.

All renderers follow the same pattern:
  - Input: the ``results.json`` document (or one of its sections)
  - Output: str (HTML fragment, not a full page)
  - No side effects, no I/O, no Prefect decorators

Used by flows/build.py, which wraps fragments into pages with
``base.html.j2``.

Public API:
  - survey_summary: build_survey_summary_html, build_findings_html
  - clusters: build_gap_chart_html, build_cluster_sizes_html, build_cluster_tests_html
  - indicators: build_indicators_html
  - ordination: build_ordination_html, build_permanova_html
  - environment: build_envfit_html, build_covariates_html
  - palette: cluster_color, build_cluster_palette
  - formatting: format_p, format_number, summary sentences

Adding a report section
-----------------------
1. Create ``renderers/{name}.py`` with a build function::

       from peninsula_predators.renderers import render_template

       def build_diversity_html(results: dict[str, Any]) -> str:
           rows = [...]
           return render_template("diversity.html.j2", rows=rows)

2. Create a Jinja2 fragment template in ``templates/{name}.html.j2``.
   CSS goes in ``templates/base.html.j2``.

3. Call it from ``build_pages()`` in ``flows/build.py`` and add the
   fragment to a page's section list.

4. Add tests in ``tests/test_renderers.py``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jinja2

# Shared Jinja2 environment for all renderers
_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
_jinja_env = jinja2.Environment(
    loader=jinja2.FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=True,
)


def render_template(template_name: str, **kwargs: Any) -> str:
    """Render a Jinja2 template by name."""
    return _jinja_env.get_template(template_name).render(**kwargs)
