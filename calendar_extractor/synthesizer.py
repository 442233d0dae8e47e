"""
Calendar synthesizer.

Assembles the final :class:`Calendar`.  Extracted activities are kept and
patched from the commodity's timing template; when nothing usable was
extracted the whole activity list is replaced by the template calendar.
"""

import logging
from dataclasses import dataclass, field

from . import activity_colors, templates
from .classifier import calendar_type_for
from .colors import SOURCE_STYLE
from .config import DEFAULTS
from .timeline import Timeline

logger = logging.getLogger(__name__)


@dataclass
class Calendar:
    calendar_type: str
    commodity: str
    timeline: Timeline
    activities: list = field(default_factory=list)
    synthesized: bool = False

    def grid_rows(self) -> list:
        """One row per activity, one cell per timeline column: colour hex or None."""
        rows = []
        for activity in self.activities:
            row = [None] * len(self.timeline)
            for period in activity.active_periods:
                if 0 <= period.column_index < len(row):
                    row[period.column_index] = period.color.hex
            rows.append(row)
        return rows

    def summary(self) -> dict:
        periods = [p for a in self.activities for p in a.active_periods]
        styled = sum(1 for p in periods if p.color.source == SOURCE_STYLE)
        return {
            "totalActivities": len(self.activities),
            "timeSpan": len(self.timeline),
            "activePeriodsCount": len(periods),
            "styleColorCount": styled,
            "fallbackColorCount": len(periods) - styled,
        }

    def to_dict(self) -> dict:
        return {
            "commodity": self.commodity,
            "calendarType": self.calendar_type,
            "timeline": self.timeline.to_dict(),
            "activities": [a.to_dict() for a in self.activities],
            "synthesized": self.synthesized,
        }


def _fill_empty(activity, commodity, timeline, config) -> bool:
    """Give a period-less activity its template periods; False if none match."""
    match = templates.match_template_activity(commodity, activity.name)
    weeks = match.weeks if match is not None else templates.generic_pattern(activity.name)
    if not weeks:
        return False
    color_name = match.name if match is not None else activity.name
    for period in templates.template_periods(commodity, color_name, weeks, timeline, config):
        activity.add_period(period)
    return bool(activity.active_periods)


def merge_or_replace(extracted: list, synthesized: list, timeline: Timeline,
                     commodity: str, config=None) -> Calendar:
    """Combine extracted activities with the template output for *commodity*.

    - no extracted activity survives: the template calendar replaces
      them and ``Calendar.synthesized`` is True;
    - fewer activities than the template lists: missing template
      activities are appended;
    - activities without periods take their template periods, or are
      dropped when no template pattern matches their name.
    """
    config = config or DEFAULTS
    calendar_type = calendar_type_for(commodity)

    kept = []
    for activity in extracted:
        if not activity.active_periods:
            if not _fill_empty(activity, commodity, timeline, config):
                logger.debug("Dropping '%s': no periods and no template pattern", activity.name)
                continue
            logger.debug("'%s' filled from its template pattern", activity.name)
        kept.append(activity)

    if not kept:
        logger.info("No activities extracted, using the %s template calendar", commodity)
        return Calendar(calendar_type, commodity, timeline, list(synthesized), synthesized=True)

    expected = templates.template_for(commodity)
    if len(kept) < len(expected):
        covered = set()
        for activity in kept:
            match = templates.match_template_activity(commodity, activity.name)
            if match is not None:
                covered.add(match.name)
        by_name = {a.name: a for a in synthesized}
        added = 0
        for template in expected:
            if template.name not in covered and template.name in by_name:
                kept.append(by_name[template.name])
                added += 1
        if added:
            logger.info("Added %d template activities missing from the sheet", added)

    for activity in kept:
        if activity.primary_color is None or activity.primary_color.source != SOURCE_STYLE:
            match = templates.match_template_activity(commodity, activity.name)
            default = activity_colors.template_lookup(
                commodity, match.name if match else activity.name, config["default_color"])
            activity.refresh_primary_color(default)

    return Calendar(calendar_type, commodity, timeline, kept, synthesized=False)
