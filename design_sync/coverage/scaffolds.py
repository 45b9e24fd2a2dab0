"""Test scaffold generation for missing coverage.

Produces starter test files (visual, interaction, a11y) for a component
variant whose stories lack those test types. File contents are rendered
from fixed templates; nothing is written to disk here.
"""

import re
import time
from string import Template
from typing import Literal

from pydantic import BaseModel, Field

from design_sync.core.sync_logger import log_sync_event

ScaffoldType = Literal["visual", "interaction", "a11y"]

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9]")

_VISUAL_PATH = Template("apps/web/tests/designSync/visual/${component}_${variant}.spec.ts")
_VISUAL_TEMPLATE = Template(
    """// Visual regression test scaffold (auto-generated)
// Component: $component
// Variant: $variant

import { test, expect } from '@playwright/test';

test.describe('$component - $variant (Visual)', () => {
  test('should match baseline snapshot', async ({ page }) => {
    await page.goto('/storybook/iframe.html?id=$component--$variant');
    await page.waitForLoadState('networkidle');

    const component = page.locator('[data-testid="$component"]').first();
    await expect(component).toBeVisible();

    await expect(page).toHaveScreenshot('${component}_${variant}.png');
  });
});
"""
)

_INTERACTION_PATH = Template("apps/web/tests/designSync/interaction/${component}_${variant}.cy.ts")
_INTERACTION_TEMPLATE = Template(
    """// Interaction test scaffold (auto-generated)
// Component: $component
// Variant: $variant

describe('$component - $variant (Interaction)', () => {
  beforeEach(() => {
    cy.mount('<$component variant="$variant" />');
  });

  it('should render without errors', () => {
    cy.get('[data-testid="$component"]').should('exist').and('be.visible');
  });

  it('should handle user interactions', () => {
    cy.get('[data-testid="$component"]').should('be.visible');
  });
});
"""
)

_A11Y_PATH = Template("apps/web/tests/designSync/a11y/${component}_${variant}.a11y.spec.ts")
_A11Y_TEMPLATE = Template(
    """// Accessibility test scaffold (auto-generated)
// Component: $component
// Variant: $variant

import { test, expect } from '@playwright/test';
import AxeBuilder from '@axe-core/playwright';

test.describe('$component - $variant (Accessibility)', () => {
  test('should pass axe accessibility checks', async ({ page }) => {
    await page.goto('/storybook/iframe.html?id=$component--$variant');
    await page.waitForLoadState('networkidle');

    const component = page.locator('[data-testid="$component"]').first();
    await expect(component).toBeVisible();

    const results = await new AxeBuilder({ page })
      .include('[data-testid="$component"]')
      .analyze();

    expect(results.violations).toEqual([]);
  });
});
"""
)

_TEMPLATES: dict[str, tuple[Template, Template]] = {
    "visual": (_VISUAL_PATH, _VISUAL_TEMPLATE),
    "interaction": (_INTERACTION_PATH, _INTERACTION_TEMPLATE),
    "a11y": (_A11Y_PATH, _A11Y_TEMPLATE),
}


class ScaffoldTemplate(BaseModel):
    type: ScaffoldType
    file_path: str
    content: str


class ScaffoldGenerationRequest(BaseModel):
    component_id: str
    component_name: str
    variant_name: str
    missing_test_types: list[str] = Field(default_factory=list)


class ScaffoldGenerationResult(BaseModel):
    generated: list[ScaffoldTemplate] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


def sanitize_name(name: str) -> str:
    """Replace every character outside ``[a-zA-Z0-9]`` with ``_``."""
    return _UNSAFE_NAME_CHARS.sub("_", name)


def render_scaffold(test_type: ScaffoldType, component_name: str, variant_name: str) -> ScaffoldTemplate:
    """Render one scaffold for already-sanitized names."""
    path_template, content_template = _TEMPLATES[test_type]
    values = {"component": component_name, "variant": variant_name}
    return ScaffoldTemplate(
        type=test_type,
        file_path=path_template.substitute(values),
        content=content_template.substitute(values),
    )


def generate_scaffolds(request: ScaffoldGenerationRequest) -> ScaffoldGenerationResult:
    """Generate scaffolds for every missing test type of one variant.

    Unknown test types are skipped with a warning rather than failing the
    whole request.
    """
    start = time.monotonic()
    component = sanitize_name(request.component_name)
    variant = sanitize_name(request.variant_name)
    result = ScaffoldGenerationResult()

    for test_type in request.missing_test_types:
        if test_type not in _TEMPLATES:
            result.skipped.append(f"Unknown test type: {test_type}")
            result.warnings.append(f"Test type '{test_type}' not recognized; skipped")
            continue
        result.generated.append(render_scaffold(test_type, component, variant))  # type: ignore[arg-type]

    log_sync_event(
        "scaffolds.generate",
        component_id=request.component_id,
        component_name=request.component_name,
        variant_name=request.variant_name,
        generated_count=len(result.generated),
        skipped_count=len(result.skipped),
        duration_ms=int((time.monotonic() - start) * 1000),
    )
    return result
