"""
Care Analytics & Reporting

Read-only queries over the loaded caregivers and carelogs tables:
attendance and reliability, visit durations and outliers, documentation
habits, and overtime per caregiver, agency and schedule slot.
Intended for a post-load summary; a failing query is logged and yields no rows.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import psycopg2

from db.connection import DatabaseConnection

logger = logging.getLogger(__name__)

# Actual duration of a visit in minutes, NULL when either clock time is missing.
_ACTUAL_MINUTES = (
    "EXTRACT(EPOCH FROM (cl.clock_out_actual_datetime - cl.clock_in_actual_datetime)) / 60"
)

# Start hour ranges of the schedule slots; anything else is "Night/Early (23-5)".
_TIME_PERIOD = """
    CASE
        WHEN EXTRACT(HOUR FROM cl.start_datetime) BETWEEN 6 AND 11 THEN 'Morning (6-11)'
        WHEN EXTRACT(HOUR FROM cl.start_datetime) BETWEEN 12 AND 17 THEN 'Afternoon (12-17)'
        WHEN EXTRACT(HOUR FROM cl.start_datetime) BETWEEN 18 AND 22 THEN 'Evening (18-22)'
        ELSE 'Night/Early (23-5)'
    END
"""

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


@dataclass
class CaregiverCompletion:
    """Completed vs scheduled visits for one caregiver."""
    caregiver_id: str
    caregiver_name: Optional[str]
    agency_id: str
    total_visits: int
    completed_visits: int

    @property
    def completion_rate(self) -> float:
        """Completed visits as percentage."""
        if self.total_visits == 0:
            return 0.0
        return (self.completed_visits / self.total_visits) * 100


@dataclass
class ReliabilityIssues:
    """Attendance problems for one caregiver."""
    caregiver_id: str
    caregiver_name: Optional[str]
    agency_id: str
    scheduled_visits: int
    missed_visits: int
    late_arrivals: int
    cancellations: int

    @property
    def total_issues(self) -> int:
        return self.missed_visits + self.late_arrivals + self.cancellations

    @property
    def issue_rate(self) -> float:
        """Issues as percentage of scheduled visits."""
        if self.scheduled_visits == 0:
            return 0.0
        return (self.total_issues / self.scheduled_visits) * 100


@dataclass
class VisitDurationSummary:
    """Average actual visit length for one caregiver."""
    caregiver_id: str
    caregiver_name: Optional[str]
    agency_id: str
    total_visits: int
    valid_visits: int
    avg_duration_minutes: Optional[float]
    missing_timestamps: int
    inconsistent_timestamps: int


@dataclass
class OvertimeSummary:
    """Weeks over the weekly hour threshold for one caregiver."""
    caregiver_id: str
    caregiver_name: Optional[str]
    agency_id: str
    weeks_worked: int
    weeks_with_overtime: int
    max_weekly_hours: float
    overtime_hours: float

    @property
    def overtime_frequency(self) -> float:
        """Overtime weeks as percentage of weeks worked."""
        if self.weeks_worked == 0:
            return 0.0
        return (self.weeks_with_overtime / self.weeks_worked) * 100


@dataclass
class VisitOutlier:
    """A visit much shorter or longer than the typical visit."""
    carelog_id: str
    caregiver_name: Optional[str]
    agency_id: str
    duration_minutes: float
    category: str
    start_datetime: datetime
    system_avg_minutes: float


@dataclass
class DocumentationProfile:
    """How often, and how extensively, one caregiver documents visits."""
    caregiver_id: str
    caregiver_name: Optional[str]
    agency_id: str
    total_visits: int
    visits_with_documentation: int
    avg_documentation_length: float

    CONSISTENT_PCT = 80.0
    DETAILED_CHARS = 100.0

    @property
    def consistency_rate(self) -> float:
        """Documented visits as percentage."""
        if self.total_visits == 0:
            return 0.0
        return (self.visits_with_documentation / self.total_visits) * 100

    @property
    def category(self) -> str:
        consistent = self.consistency_rate >= self.CONSISTENT_PCT
        detailed = self.avg_documentation_length >= self.DETAILED_CHARS
        if consistent and detailed:
            return "Consistently Detailed"
        if consistent:
            return "Consistent"
        if detailed:
            return "Detailed When Present"
        return "Needs Improvement"


@dataclass
class AgencyOvertime:
    """Hours worked and overtime weeks for one agency."""
    agency_id: str
    total_caregivers: int
    total_hours: float
    total_visits: int
    weeks_with_overtime: int

    @property
    def avg_hours_per_caregiver(self) -> float:
        if self.total_caregivers == 0:
            return 0.0
        return self.total_hours / self.total_caregivers


@dataclass
class SchedulePattern:
    """Visit lengths for one weekday and time-of-day slot."""
    day_of_week: str
    time_period: str
    total_visits: int
    avg_visit_hours: float
    long_visits: int


class CareAnalyticsProvider:
    """Provides access to care operations metrics over the loaded data."""

    LATE_ARRIVAL_MINUTES = 30
    CANCELLED_STATUSES = (0, -1)
    SHORT_DOCUMENTATION_CHARS = 10
    LONG_DOCUMENTATION_CHARS = 1000
    REPETITIVE_PATTERNS = ("%performed performed%", "%completed completed%", "%provided provided%")
    MARKUP_PATTERNS = ("%<br%", "%&%", "%<%")
    OUTLIER_PERCENTILES = (0.1, 0.9)
    LONG_VISIT_HOURS = 8

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def _fetch(self, name: str, query: str, params: tuple = ()) -> List[tuple]:
        try:
            return self.db.execute_query(query, params)
        except psycopg2.Error as e:
            logger.error(f"Failed to fetch {name}: {e}")
            return []

    def top_performers(self, limit: int = 10) -> List[CaregiverCompletion]:
        """
        Caregivers with the most completed visits.

        A visit is completed when both actual clock-in and clock-out are recorded.

        Args:
            limit: Number of caregivers to return

        Returns:
            List of CaregiverCompletion, most completed visits first
        """
        query = """
            SELECT
                c.caregiver_id,
                c.first_name || ' ' || c.last_name AS caregiver_name,
                c.agency_id,
                COUNT(*) AS total_visits,
                COUNT(*) FILTER (
                    WHERE cl.clock_in_actual_datetime IS NOT NULL
                      AND cl.clock_out_actual_datetime IS NOT NULL
                ) AS completed_visits
            FROM caregivers c
            JOIN carelogs cl ON c.caregiver_id = cl.caregiver_id
            GROUP BY c.caregiver_id, c.first_name, c.last_name, c.agency_id
            ORDER BY completed_visits DESC, total_visits DESC
            LIMIT %s;
        """
        return [
            CaregiverCompletion(
                caregiver_id=row[0],
                caregiver_name=row[1],
                agency_id=row[2],
                total_visits=row[3],
                completed_visits=row[4],
            )
            for row in self._fetch("top performers", query, (limit,))
        ]

    def reliability_issues(self, limit: int = 10) -> List[ReliabilityIssues]:
        """
        Caregivers with missed visits, late arrivals or cancellations.

        Args:
            limit: Number of caregivers to return

        Returns:
            List of ReliabilityIssues, most issues first
        """
        query = """
            SELECT
                c.caregiver_id,
                c.first_name || ' ' || c.last_name AS caregiver_name,
                c.agency_id,
                COUNT(*) AS scheduled_visits,
                COUNT(*) FILTER (WHERE cl.clock_in_actual_datetime IS NULL) AS missed_visits,
                COUNT(*) FILTER (
                    WHERE cl.clock_in_actual_datetime > cl.start_datetime + make_interval(mins => %s)
                ) AS late_arrivals,
                COUNT(*) FILTER (WHERE cl.status = ANY(%s)) AS cancellations
            FROM caregivers c
            JOIN carelogs cl ON c.caregiver_id = cl.caregiver_id
            GROUP BY c.caregiver_id, c.first_name, c.last_name, c.agency_id
        """
        rows = self._fetch(
            "reliability issues",
            query,
            (self.LATE_ARRIVAL_MINUTES, list(self.CANCELLED_STATUSES)),
        )
        issues = [
            ReliabilityIssues(
                caregiver_id=row[0],
                caregiver_name=row[1],
                agency_id=row[2],
                scheduled_visits=row[3],
                missed_visits=row[4],
                late_arrivals=row[5],
                cancellations=row[6],
            )
            for row in rows
        ]
        issues = [issue for issue in issues if issue.total_issues > 0]
        issues.sort(key=lambda issue: (issue.total_issues, issue.issue_rate), reverse=True)
        return issues[:limit]

    def visit_durations(self, limit: int = 10) -> List[VisitDurationSummary]:
        """
        Average actual visit duration per caregiver.

        Visits missing a clock time, or clocking out before clocking in,
        are counted separately and left out of the average.

        Args:
            limit: Number of caregivers to return

        Returns:
            List of VisitDurationSummary, longest average first
        """
        query = f"""
            WITH visits AS (
                SELECT
                    cl.caregiver_id,
                    CASE
                        WHEN cl.clock_in_actual_datetime IS NULL
                          OR cl.clock_out_actual_datetime IS NULL THEN 'missing'
                        WHEN cl.clock_in_actual_datetime >= cl.clock_out_actual_datetime THEN 'inconsistent'
                        ELSE 'valid'
                    END AS timestamp_status,
                    {_ACTUAL_MINUTES} AS actual_minutes
                FROM carelogs cl
            )
            SELECT
                c.caregiver_id,
                c.first_name || ' ' || c.last_name AS caregiver_name,
                c.agency_id,
                COUNT(*) AS total_visits,
                COUNT(*) FILTER (WHERE v.timestamp_status = 'valid') AS valid_visits,
                ROUND(AVG(v.actual_minutes) FILTER (WHERE v.timestamp_status = 'valid')::numeric, 2)
                    AS avg_duration_minutes,
                COUNT(*) FILTER (WHERE v.timestamp_status = 'missing') AS missing_timestamps,
                COUNT(*) FILTER (WHERE v.timestamp_status = 'inconsistent') AS inconsistent_timestamps
            FROM caregivers c
            JOIN visits v ON c.caregiver_id = v.caregiver_id
            GROUP BY c.caregiver_id, c.first_name, c.last_name, c.agency_id
            HAVING COUNT(*) FILTER (WHERE v.timestamp_status = 'valid') > 0
            ORDER BY avg_duration_minutes DESC
            LIMIT %s;
        """
        return [
            VisitDurationSummary(
                caregiver_id=row[0],
                caregiver_name=row[1],
                agency_id=row[2],
                total_visits=row[3],
                valid_visits=row[4],
                avg_duration_minutes=float(row[5]) if row[5] is not None else None,
                missing_timestamps=row[6],
                inconsistent_timestamps=row[7],
            )
            for row in self._fetch("visit durations", query, (limit,))
        ]

    def visit_outliers(self, limit: int = 20) -> List[VisitOutlier]:
        """
        Visits below the 10th or above the 90th duration percentile.

        Only visits with both clock times, clocking out after clocking in,
        are considered.

        Args:
            limit: Number of visits to return

        Returns:
            List of VisitOutlier, shortest first
        """
        low, high = self.OUTLIER_PERCENTILES
        query = f"""
            WITH durations AS (
                SELECT
                    cl.carelog_id,
                    cl.caregiver_id,
                    cl.start_datetime,
                    {_ACTUAL_MINUTES} AS actual_minutes
                FROM carelogs cl
                WHERE cl.clock_in_actual_datetime IS NOT NULL
                  AND cl.clock_out_actual_datetime IS NOT NULL
                  AND cl.clock_in_actual_datetime < cl.clock_out_actual_datetime
            ),
            percentiles AS (
                SELECT
                    PERCENTILE_CONT(%s) WITHIN GROUP (ORDER BY actual_minutes) AS p_low,
                    PERCENTILE_CONT(%s) WITHIN GROUP (ORDER BY actual_minutes) AS p_high,
                    AVG(actual_minutes) AS avg_minutes
                FROM durations
            )
            SELECT
                d.carelog_id,
                c.first_name || ' ' || c.last_name AS caregiver_name,
                c.agency_id,
                ROUND(d.actual_minutes::numeric, 2) AS duration_minutes,
                CASE WHEN d.actual_minutes < p.p_low THEN 'shorter' ELSE 'longer' END AS category,
                d.start_datetime,
                ROUND(p.avg_minutes::numeric, 2) AS system_avg_minutes
            FROM durations d
            JOIN caregivers c ON c.caregiver_id = d.caregiver_id
            CROSS JOIN percentiles p
            WHERE d.actual_minutes < p.p_low OR d.actual_minutes > p.p_high
            ORDER BY duration_minutes
            LIMIT %s;
        """
        return [
            VisitOutlier(
                carelog_id=row[0],
                caregiver_name=row[1],
                agency_id=row[2],
                duration_minutes=float(row[3]),
                category=row[4],
                start_datetime=row[5],
                system_avg_minutes=float(row[6]),
            )
            for row in self._fetch("visit outliers", query, (low, high, limit))
        ]

    def documentation_quality(self) -> List[Dict[str, Any]]:
        """
        Counts of suspicious documentation patterns across all visits.

        Returns:
            List of {"issue", "occurrences", "pct_of_visits"}, most frequent first
        """
        query = """
            SELECT
                COUNT(*) AS total_visits,
                COUNT(*) FILTER (
                    WHERE documentation IS NULL OR LENGTH(TRIM(documentation)) = 0
                ) AS empty_documentation,
                COUNT(*) FILTER (
                    WHERE LENGTH(TRIM(documentation)) BETWEEN 1 AND %s
                ) AS short_documentation,
                COUNT(*) FILTER (WHERE LENGTH(documentation) > %s) AS long_documentation,
                COUNT(*) FILTER (WHERE documentation LIKE ANY(%s)) AS repetitive_documentation,
                COUNT(*) FILTER (WHERE documentation LIKE ANY(%s)) AS markup_documentation
            FROM carelogs;
        """
        rows = self._fetch(
            "documentation quality",
            query,
            (
                self.SHORT_DOCUMENTATION_CHARS - 1,
                self.LONG_DOCUMENTATION_CHARS,
                list(self.REPETITIVE_PATTERNS),
                list(self.MARKUP_PATTERNS),
            ),
        )
        if not rows:
            return []

        total_visits = rows[0][0] or 0
        labels = (
            "Empty or missing documentation",
            f"Unusually short documentation (<{self.SHORT_DOCUMENTATION_CHARS} characters)",
            f"Unusually long documentation (>{self.LONG_DOCUMENTATION_CHARS} characters)",
            "Suspicious repetitive patterns",
            "Contains HTML or special characters",
        )
        breakdown = [
            {
                "issue": label,
                "occurrences": count or 0,
                "pct_of_visits": round((count or 0) * 100.0 / total_visits, 2) if total_visits else 0.0,
            }
            for label, count in zip(labels, rows[0][1:])
        ]
        breakdown.sort(key=lambda item: item["occurrences"], reverse=True)
        return breakdown

    def detailed_documentation_providers(self, limit: int = 10) -> List[DocumentationProfile]:
        """
        Caregivers ranked by how consistently and extensively they document visits.

        Args:
            limit: Number of caregivers to return

        Returns:
            List of DocumentationProfile, most consistent first
        """
        query = """
            SELECT
                c.caregiver_id,
                c.first_name || ' ' || c.last_name AS caregiver_name,
                c.agency_id,
                COUNT(*) AS total_visits,
                COUNT(*) FILTER (WHERE LENGTH(TRIM(cl.documentation)) > 0) AS visits_with_documentation,
                ROUND(AVG(COALESCE(LENGTH(cl.documentation), 0))::numeric, 2) AS avg_documentation_length
            FROM caregivers c
            JOIN carelogs cl ON c.caregiver_id = cl.caregiver_id
            GROUP BY c.caregiver_id, c.first_name, c.last_name, c.agency_id
            ORDER BY
                COUNT(*) FILTER (WHERE LENGTH(TRIM(cl.documentation)) > 0)::float / COUNT(*) DESC,
                avg_documentation_length DESC
            LIMIT %s;
        """
        return [
            DocumentationProfile(
                caregiver_id=row[0],
                caregiver_name=row[1],
                agency_id=row[2],
                total_visits=row[3],
                visits_with_documentation=row[4],
                avg_documentation_length=float(row[5]),
            )
            for row in self._fetch("documentation providers", query, (limit,))
        ]

    def overtime(self, limit: int = 10, weekly_hours: float = 40.0) -> List[OvertimeSummary]:
        """
        Caregivers whose actual hours exceed a weekly threshold.

        Args:
            limit: Number of caregivers to return
            weekly_hours: Hours per week above which time counts as overtime

        Returns:
            List of OvertimeSummary, most overtime hours first
        """
        query = f"""
            WITH weekly_hours AS (
                SELECT
                    cl.caregiver_id,
                    DATE_TRUNC('week', cl.start_datetime) AS week_start,
                    SUM(COALESCE({_ACTUAL_MINUTES}, 0)) / 60 AS hours
                FROM carelogs cl
                GROUP BY cl.caregiver_id, DATE_TRUNC('week', cl.start_datetime)
            )
            SELECT
                c.caregiver_id,
                c.first_name || ' ' || c.last_name AS caregiver_name,
                c.agency_id,
                COUNT(*) AS weeks_worked,
                COUNT(*) FILTER (WHERE w.hours > %s) AS weeks_with_overtime,
                ROUND(MAX(w.hours)::numeric, 2) AS max_weekly_hours,
                ROUND(SUM(GREATEST(w.hours - %s, 0))::numeric, 2) AS overtime_hours
            FROM caregivers c
            JOIN weekly_hours w ON c.caregiver_id = w.caregiver_id
            GROUP BY c.caregiver_id, c.first_name, c.last_name, c.agency_id
            HAVING COUNT(*) FILTER (WHERE w.hours > %s) > 0
            ORDER BY overtime_hours DESC
            LIMIT %s;
        """
        rows = self._fetch("overtime", query, (weekly_hours, weekly_hours, weekly_hours, limit))
        return [
            OvertimeSummary(
                caregiver_id=row[0],
                caregiver_name=row[1],
                agency_id=row[2],
                weeks_worked=row[3],
                weeks_with_overtime=row[4],
                max_weekly_hours=float(row[5]),
                overtime_hours=float(row[6]),
            )
            for row in rows
        ]

    def overtime_by_agency(self, weekly_hours: float = 40.0) -> List[AgencyOvertime]:
        """
        Hours and overtime weeks per agency.

        An agency week counts as overtime when its total hours exceed
        weekly_hours for every caregiver of the agency.

        Args:
            weekly_hours: Hours per caregiver per week above which time counts as overtime

        Returns:
            List of AgencyOvertime, highest hours per caregiver first
        """
        query = f"""
            WITH agency_totals AS (
                SELECT
                    c.agency_id,
                    COUNT(DISTINCT c.caregiver_id) AS total_caregivers,
                    SUM(COALESCE({_ACTUAL_MINUTES}, 0)) / 60 AS total_hours,
                    COUNT(*) AS total_visits
                FROM caregivers c
                JOIN carelogs cl ON c.caregiver_id = cl.caregiver_id
                GROUP BY c.agency_id
            ),
            agency_weeks AS (
                SELECT
                    c.agency_id,
                    SUM(COALESCE({_ACTUAL_MINUTES}, 0)) / 60 AS hours
                FROM caregivers c
                JOIN carelogs cl ON c.caregiver_id = cl.caregiver_id
                GROUP BY c.agency_id, DATE_TRUNC('week', cl.start_datetime)
            )
            SELECT
                a.agency_id,
                a.total_caregivers,
                ROUND(a.total_hours::numeric, 2) AS total_hours,
                a.total_visits,
                COUNT(*) FILTER (WHERE w.hours > %s * a.total_caregivers) AS weeks_with_overtime
            FROM agency_totals a
            LEFT JOIN agency_weeks w ON a.agency_id = w.agency_id
            GROUP BY a.agency_id, a.total_caregivers, a.total_hours, a.total_visits;
        """
        agencies = [
            AgencyOvertime(
                agency_id=row[0],
                total_caregivers=row[1],
                total_hours=float(row[2]),
                total_visits=row[3],
                weeks_with_overtime=row[4],
            )
            for row in self._fetch("agency overtime", query, (weekly_hours,))
        ]
        agencies.sort(key=lambda agency: agency.avg_hours_per_caregiver, reverse=True)
        return agencies

    def overtime_by_schedule(self) -> List[SchedulePattern]:
        """
        Visit lengths by weekday and time-of-day slot of the scheduled start.

        Returns:
            List of SchedulePattern, Sunday first
        """
        query = f"""
            SELECT
                EXTRACT(DOW FROM cl.start_datetime)::int AS day_of_week,
                {_TIME_PERIOD} AS time_period,
                COUNT(*) AS total_visits,
                ROUND(AVG({_ACTUAL_MINUTES} / 60)::numeric, 2) AS avg_visit_hours,
                COUNT(*) FILTER (WHERE {_ACTUAL_MINUTES} / 60 > %s) AS long_visits
            FROM carelogs cl
            WHERE cl.clock_in_actual_datetime IS NOT NULL
              AND cl.clock_out_actual_datetime IS NOT NULL
            GROUP BY 1, 2
            ORDER BY 1, 2;
        """
        return [
            SchedulePattern(
                day_of_week=DAY_NAMES[int(row[0])],
                time_period=row[1],
                total_visits=row[2],
                avg_visit_hours=float(row[3]),
                long_visits=row[4],
            )
            for row in self._fetch("schedule patterns", query, (self.LONG_VISIT_HOURS,))
        ]

    def log_report(self, limit: int = 5) -> None:
        """Log a short analytics report over the loaded data."""
        logger.info("-" * 60)
        logger.info("Care Analytics")
        logger.info("-" * 60)

        for item in self.top_performers(limit):
            logger.info(
                f"Top performer {item.caregiver_id} ({item.caregiver_name}): "
                f"{item.completed_visits}/{item.total_visits} completed ({item.completion_rate:.2f}%)"
            )

        for item in self.reliability_issues(limit):
            logger.info(
                f"Reliability {item.caregiver_id}: {item.missed_visits} missed, "
                f"{item.late_arrivals} late, {item.cancellations} cancelled "
                f"({item.issue_rate:.2f}% of {item.scheduled_visits})"
            )

        for item in self.visit_durations(limit):
            logger.info(
                f"Avg visit {item.caregiver_id}: {item.avg_duration_minutes:.2f} min "
                f"over {item.valid_visits} valid visits"
            )

        for item in self.documentation_quality():
            logger.info(f"{item['issue']}: {item['occurrences']} ({item['pct_of_visits']}%)")

        for item in self.overtime(limit):
            logger.info(
                f"Overtime {item.caregiver_id}: {item.overtime_hours:.2f}h over "
                f"{item.weeks_with_overtime}/{item.weeks_worked} weeks"
            )

        for item in self.visit_outliers(limit):
            logger.info(
                f"Outlier visit {item.carelog_id} ({item.caregiver_name}): {item.duration_minutes:.2f} min, "
                f"{item.category} than the {item.system_avg_minutes:.2f} min average"
            )

        for item in self.detailed_documentation_providers(limit):
            logger.info(
                f"Documentation {item.caregiver_id}: {item.category}, "
                f"{item.consistency_rate:.2f}% documented, avg {item.avg_documentation_length:.0f} chars"
            )

        for item in self.overtime_by_agency():
            logger.info(
                f"Agency {item.agency_id}: {item.avg_hours_per_caregiver:.2f}h per caregiver, "
                f"{item.weeks_with_overtime} overtime weeks"
            )

        for item in self.overtime_by_schedule():
            if item.long_visits:
                logger.info(
                    f"{item.day_of_week} {item.time_period}: {item.long_visits} of {item.total_visits} "
                    f"visits over {self.LONG_VISIT_HOURS}h"
                )
