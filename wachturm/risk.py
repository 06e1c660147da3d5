"""
Update risk assessment.

All upgradable packages that carry a changelog are sent to the oracle in a
single request. The structured answer is merged back by exact package name;
anything the oracle does not name stays unscored and is never applied.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Literal, Optional

import anthropic
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wachturm.exceptions import OracleFailure
from wachturm.models import PackageRecord

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"

PROMPT_HEADER = "Analyze these Ubuntu package updates and provide a compatibility assessment:\n\n"

SYSTEM_PROMPT = (
    "You are a Linux system administrator specializing in package management. "
    "Analyze package changelog data to determine update compatibility levels. "
    "Respond with structured data only."
)

TOOL_NAME = "update_compatibility_assessment"


class CompatibilityScore(BaseModel):
    """Risk assessment of one package update."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Package name")
    risk_level: Literal["low", "medium", "high"] = Field(
        ..., description="Auto-update safety level based on changelog analysis"
    )
    risk_reason: str = Field(
        ..., description="Contextual explanation based on release notes and update impact"
    )


class CompatibilityScoreResponse(BaseModel):
    """Oracle response: one score per assessed package."""

    model_config = ConfigDict(extra="forbid")

    results: List[CompatibilityScore] = Field(default_factory=list)


def response_schema() -> Dict[str, Any]:
    """JSON schema of CompatibilityScoreResponse with the item schema inlined."""
    return {
        "type": "object",
        "properties": {
            "results": {
                "type": "array",
                "items": CompatibilityScore.model_json_schema(),
            },
        },
        "required": ["results"],
        "additionalProperties": False,
    }


class RiskOracle(ABC):
    """External capability that classifies compatibility risk."""

    @abstractmethod
    def assess(self, prompt: str) -> List[CompatibilityScore]:
        """Return scores for the packages described in prompt. Raises OracleFailure."""


class AnthropicRiskOracle(RiskOracle):
    """RiskOracle backed by the Anthropic Messages API, forced through a single tool."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        timeout: float = 120.0,
        max_tokens: int = 4096,
        client: Optional[anthropic.Anthropic] = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        # No automatic retries: a failed call aborts the run.
        self.client = client or anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self.schema = response_schema()

    def assess(self, prompt: str) -> List[CompatibilityScore]:
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                tools=[{
                    "name": TOOL_NAME,
                    "description": "Assess the compatibility of package updates",
                    "input_schema": self.schema,
                }],
                tool_choice={"type": "tool", "name": TOOL_NAME},
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise OracleFailure(f"Anthropic API error: {e}") from e

        payload = None
        for block in response.content:
            if getattr(block, "type", None) == "tool_use" and block.name == TOOL_NAME:
                payload = block.input
                break
        if payload is None:
            raise OracleFailure("Anthropic response did not contain a compatibility assessment")

        try:
            parsed = CompatibilityScoreResponse.model_validate(payload)
        except ValidationError as e:
            raise OracleFailure(f"failed to parse oracle response: {e}") from e
        return parsed.results


def is_eligible(pkg: PackageRecord) -> bool:
    """Only packages with an upgrade and a changelog are sent to the oracle."""
    return pkg.upgrade is not None and pkg.upgrade.changelog is not None


def build_prompt(packages: List[PackageRecord]) -> str:
    """Describe every eligible package; empty string when none is eligible."""
    blocks = []
    for pkg in packages:
        if not is_eligible(pkg):
            continue
        blocks.append(
            f"Package: {pkg.name}\n"
            f"Update: {pkg.version} -> {pkg.upgrade.new_version}\n"
            f"Changelog:\n{pkg.upgrade.changelog.raw}\n\n"
        )
    if not blocks:
        return ""
    return PROMPT_HEADER + "".join(blocks)


def merge_scores(packages: List[PackageRecord], results: List[CompatibilityScore]) -> List[PackageRecord]:
    """
    Copy risk fields from results onto copies of packages.

    The first result whose name equals the package name (case-sensitive)
    wins. Unmatched packages, and packages that were never described to the
    oracle because they lack a changelog, keep empty risk fields.
    """
    merged = []
    for pkg in packages:
        scored = copy.deepcopy(pkg)
        if is_eligible(scored):
            match = next((r for r in results if r.name == scored.name), None)
            if match is not None:
                scored.upgrade.risk_level = match.risk_level
                scored.upgrade.risk_reason = match.risk_reason
        merged.append(scored)
    return merged


class RiskAssessor:
    """Scores upgradable packages with one batched oracle call."""

    def __init__(self, oracle: RiskOracle):
        self.oracle = oracle

    def score_risks(self, packages: List[PackageRecord]) -> List[PackageRecord]:
        """
        Return scored copies of packages.

        Raises:
            OracleFailure: the oracle call failed; nothing may be applied.
        """
        prompt = build_prompt(packages)
        if not prompt:
            logger.info("No package with a changelog to assess")
            return copy.deepcopy(packages)

        eligible = sum(1 for pkg in packages if is_eligible(pkg))
        logger.info(f"Requesting risk assessment for {eligible} packages")
        results = self.oracle.assess(prompt)

        scored = merge_scores(packages, results)
        unscored = [pkg.name for pkg in scored if pkg.upgrade and not pkg.upgrade.risk_level]
        if unscored:
            logger.warning(f"No risk score for: {', '.join(unscored)}")
        return scored
