"""Per-run counters and the end-of-run report."""

from dataclasses import dataclass, field

# Ordered pipeline stages
STAGES = ["discover", "dedup", "readme", "marketing", "persist"]


@dataclass
class RunSummary:
    """What each stage did during one run.

    `stages` maps a stage name to "done", "skipped" or "failed"; stages
    never reached stay pending.
    """

    source: str = ""
    fetched: int = 0
    duplicates: int = 0
    new: int = 0
    selected: int = 0
    readme_found: int = 0
    generated_ai: int = 0
    generated_fallback: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    skipped_details: list = field(default_factory=list)
    stages: dict = field(default_factory=dict)
    events: dict = field(default_factory=dict)  # event name -> count

    def complete_stage(self, stage: str):
        self.stages[stage] = "done"

    def skip_stage(self, stage: str):
        self.stages[stage] = "skipped"

    def fail_stage(self, stage: str):
        self.stages[stage] = "failed"

    @property
    def persisted(self) -> bool:
        return self.stages.get("persist") == "done"

    def summary(self) -> str:
        """Human-readable status of the run."""
        lines = ["Run summary:"]
        for stage in STAGES:
            status = self.stages.get(stage, "pending")
            marker = {"done": "+", "failed": "!", "skipped": "-", "pending": " "}.get(status, "?")
            lines.append(f"  [{marker}] {stage}")

        lines.append(f"  Fetched:      {self.fetched}" + (f" (from {self.source})" if self.source else ""))
        lines.append(f"  Duplicates:   {self.duplicates} removed, {self.new} new")
        lines.append(f"  Processed:    {self.selected} ({self.readme_found} with README)")
        lines.append(f"  Copy:         {self.generated_ai} by Claude, {self.generated_fallback} from templates")
        if self.persisted:
            lines.append(f"  Saved:        {self.succeeded} ok, {self.failed} failed, {self.skipped} skipped")
            for name, missing in self.skipped_details:
                lines.append(f"    skipped {name}: missing {', '.join(missing)}")
        if self.events:
            tally = ", ".join(f"{name} x{count}" for name, count in sorted(self.events.items()))
            lines.append(f"  Events:       {tally}")
        return "\n".join(lines)
