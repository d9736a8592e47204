"""Admin analytics tools: sales, marketing, weather and a combined recommendation.

The tools are thin formatters over the analytics repository and the weather
provider. Only the recommendation combines two sources.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING, Callable, List, Optional

from pitstop.core.exceptions import ProjectError
from pitstop.orchestrator.handlers.tool_handler import ToolDefinition
from pitstop.tools.arguments import (
    NoArgs,
    RecommendationArgs,
    RevenueRangeArgs,
    SalesDetailArgs,
    WeatherArgs,
)

if TYPE_CHECKING:
    from pitstop.services.interfaces import AnalyticsRepository, WeatherProvider

logger = logging.getLogger(__name__)

CURRENCY = "KZT"

WEATHER_GOOD = "good"
WEATHER_POOR = "poor"
WEATHER_HOT = "hot"

_WEATHER_ANALYSIS = {
    WEATHER_GOOD: "good weather, steady attendance expected",
    WEATHER_POOR: "poor weather, attendance may drop",
    WEATHER_HOT: "hot weather, daytime attendance may dip",
}

MARKETING_SUMMARY = "Marketing: Instagram +250 followers in 7 days. WhatsApp to booking conversion: 35%."


def classify_weather(temp: float, precip_prob: float) -> str:
    """Below -10°C or precipitation above 0.5 is poor, above 25°C is hot."""
    if temp < -10 or precip_prob > 0.5:
        return WEATHER_POOR
    if temp > 25:
        return WEATHER_HOT
    return WEATHER_GOOD


class AnalyticsTools:
    def __init__(
        self,
        analytics: "AnalyticsRepository",
        weather: Optional["WeatherProvider"] = None,
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._analytics = analytics
        self._weather = weather
        self._today = today

    async def get_sales_detail(self, filters: str) -> str:
        data = await self._analytics.get_sales_detail(filters)
        if (filters or "").strip().lower() == "today":
            if not data.get("total_bookings"):
                return "No sales yet today."
            return (
                f"Today: {data['total_bookings']} bookings. "
                f"Popular hour: {data['popular_hour']}. "
                f"4-seat bookings: {data['four_seat_bookings']}. "
                f"Average per seat: {data['avg_price_per_seat']:.0f} {CURRENCY}."
            )
        return (
            f"30 days: {data['total_bookings']} bookings, "
            f"revenue: {data['total_revenue']:.0f} {CURRENCY}, "
            f"average check: {data['avg_check']:.0f} {CURRENCY}."
        )

    async def get_marketing_stats(self) -> str:
        return MARKETING_SUMMARY

    async def get_weather(self, day: str) -> str:
        if self._weather is None:
            return "Error: weather provider is not configured."
        wanted = (day or "").strip().lower()
        if wanted in ("", "today", self._today().isoformat()):
            report = await self._weather.get_current_weather()
        else:
            report = await self._weather.get_forecast(day)
        verdict = classify_weather(report.temp, report.precip_prob)
        return (
            f"Weather: {report.temp:.1f}°C, {report.condition}, wind {report.wind_speed:.1f} m/s. "
            f"Analysis: {_WEATHER_ANALYSIS[verdict]}."
        )

    async def get_revenue_by_date_range(self, start_date: str, end_date: str) -> str:
        report = await self._analytics.get_sales_report(start_date, end_date)
        return (
            f"Revenue {start_date} → {end_date}: {report.total_revenue:.0f} {CURRENCY}, "
            f"{report.total_bookings} bookings, average check {report.average_check:.0f} {CURRENCY}."
        )

    async def get_sales_recommendation(self, reason: str = "") -> str:
        yesterday = (self._today() - timedelta(days=1)).isoformat()
        try:
            sales = await self.get_revenue_by_date_range(yesterday, yesterday)
        except ProjectError as exc:
            logger.warning("AnalyticsTools: yesterday's revenue unavailable: %s", exc)
            sales = "no data for yesterday"
        try:
            weather = await self.get_weather("today")
        except ProjectError as exc:
            logger.warning("AnalyticsTools: weather unavailable: %s", exc)
            weather = "weather unavailable"
        return (
            f"Combined analytics: yesterday's sales ({yesterday}): {sales} "
            f"Weather today: {weather}"
        )

    # ── Tool definitions ──────────────────────────────────────────

    def definitions(self) -> List[ToolDefinition]:
        async def sales_detail(args: SalesDetailArgs) -> str:
            return await self.get_sales_detail(args.filters)

        async def marketing(args: NoArgs) -> str:
            return await self.get_marketing_stats()

        async def weather(args: WeatherArgs) -> str:
            return await self.get_weather(args.date)

        async def revenue_range(args: RevenueRangeArgs) -> str:
            return await self.get_revenue_by_date_range(args.start_date, args.end_date)

        async def recommendation(args: RecommendationArgs) -> str:
            return await self.get_sales_recommendation(args.reason)

        return [
            ToolDefinition(
                name="GetSalesDetailTool",
                description="Detailed sales analytics. Use filters 'today' for today, anything else for the last 30 days.",
                parameters={
                    "type": "object",
                    "properties": {
                        "filters": {"type": "string", "description": "'today' or 'last30'."},
                    },
                    "required": ["filters"],
                },
                handler=sales_detail,
                arguments_model=SalesDetailArgs,
            ),
            ToolDefinition(
                name="GetMarketingStatsTool",
                description="Marketing statistics for the last week.",
                parameters={"type": "object", "properties": {}},
                handler=marketing,
                arguments_model=NoArgs,
            ),
            ToolDefinition(
                name="GetWeatherTool",
                description="Current weather or a forecast with an attendance analysis.",
                parameters={
                    "type": "object",
                    "properties": {
                        "date": {"type": "string", "description": "YYYY-MM-DD or 'today'."},
                    },
                    "required": ["date"],
                },
                handler=weather,
                arguments_model=WeatherArgs,
            ),
            ToolDefinition(
                name="GetRevenueByDateRangeTool",
                description="Revenue, bookings and average check between two dates (inclusive).",
                parameters={
                    "type": "object",
                    "properties": {
                        "start_date": {"type": "string", "description": "YYYY-MM-DD"},
                        "end_date": {"type": "string", "description": "YYYY-MM-DD"},
                    },
                    "required": ["start_date", "end_date"],
                },
                handler=revenue_range,
                arguments_model=RevenueRangeArgs,
            ),
            ToolDefinition(
                name="GetSalesRecommendationTool",
                description="Sales recommendation combining yesterday's revenue with today's weather.",
                parameters={
                    "type": "object",
                    "properties": {
                        "reason": {"type": "string", "description": "Why the admin asks (optional)."},
                    },
                },
                handler=recommendation,
                arguments_model=RecommendationArgs,
            ),
        ]
