"""Client-facing booking tools bound to one BookingService and one client."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

from pitstop.orchestrator.handlers.tool_handler import ToolDefinition
from pitstop.services.booking_service import AVAILABLE, MAX_CAPACITY, NIGHT_FROM_HOUR
from pitstop.tools.arguments import (
    CheckAvailabilityArgs,
    CreateBookingArgs,
    GeneratePaymentLinkArgs,
    GetPriceArgs,
)

if TYPE_CHECKING:
    from pitstop.services.booking_service import BookingService

logger = logging.getLogger(__name__)

CURRENCY = "KZT"

CHECK_AVAILABILITY = "CheckAvailability"
GET_PRICE = "GetPrice"
CREATE_BOOKING = "CreateBooking"
GENERATE_PAYMENT_LINK = "GeneratePaymentLink"

_DATE = {"type": "string", "description": "Date in YYYY-MM-DD format."}
_TIME = {"type": "string", "description": "Start time in HH:MM (24h) format."}
_SEATS = {"type": "integer", "description": "Number of seats, 1 to 6."}
_HOURS = {"type": "integer", "description": "Duration in hours, 1 to 12."}


def build_booking_tools(booking_service: "BookingService", client_id: str) -> List[ToolDefinition]:
    """Booking tools for one request. ``client_id`` is bound into CreateBooking."""

    async def check_availability(args: CheckAvailabilityArgs) -> str:
        verdict = await booking_service.check_availability(args.date, args.time, args.seats)
        if verdict == AVAILABLE:
            return f"Available: {args.seats} seat(s) free on {args.date} at {args.time}."
        return (
            f"Insufficient: not enough free seats on {args.date} at {args.time} "
            f"for {args.seats} seat(s) (capacity {MAX_CAPACITY})."
        )

    async def get_price(args: GetPriceArgs) -> str:
        price = booking_service.get_price(args.seats, args.hours, args.time)
        return f"Price: {price} {CURRENCY} for {args.seats} seat(s) x {args.hours} hour(s)."

    async def create_booking(args: CreateBookingArgs) -> str:
        booking_id = await booking_service.create_booking(
            client_id, args.date, args.time, args.seats, args.hours,
        )
        price = booking_service.get_price(args.seats, args.hours, args.time)
        return (
            f"Booking created: {booking_id}. {args.seats} seat(s) on {args.date} at {args.time} "
            f"for {args.hours} hour(s). Amount: {price} {CURRENCY}."
        )

    async def generate_payment_link(args: GeneratePaymentLinkArgs) -> str:
        url = booking_service.generate_payment_link(args.amount, args.booking_id)
        return f"Payment link: {url}"

    return [
        ToolDefinition(
            name=CHECK_AVAILABILITY,
            description=(
                "Check whether the requested number of seats is free at a given date and start time. "
                "Call before creating a booking."
            ),
            parameters={
                "type": "object",
                "properties": {"date": _DATE, "time": _TIME, "seats": _SEATS},
                "required": ["date", "time", "seats"],
            },
            handler=check_availability,
            arguments_model=CheckAvailabilityArgs,
        ),
        ToolDefinition(
            name=GET_PRICE,
            description=(
                "Calculate the price for seats and hours. "
                f"Sessions starting at {NIGHT_FROM_HOUR}:00 or later use the night rate."
            ),
            parameters={
                "type": "object",
                "properties": {
                    "seats": _SEATS,
                    "hours": _HOURS,
                    "time": {"type": "string", "description": "Optional start time HH:MM."},
                },
                "required": ["seats", "hours"],
            },
            handler=get_price,
            arguments_model=GetPriceArgs,
        ),
        ToolDefinition(
            name=CREATE_BOOKING,
            description="Create a booking once the client has confirmed date, time, seats and hours.",
            parameters={
                "type": "object",
                "properties": {"date": _DATE, "time": _TIME, "seats": _SEATS, "hours": _HOURS},
                "required": ["date", "time", "seats", "hours"],
            },
            handler=create_booking,
            arguments_model=CreateBookingArgs,
        ),
        ToolDefinition(
            name=GENERATE_PAYMENT_LINK,
            description="Generate a payment link for an existing booking.",
            parameters={
                "type": "object",
                "properties": {
                    "amount": {"type": "number", "description": "Amount to pay."},
                    "booking_id": {"type": "string", "description": "Booking id returned by CreateBooking."},
                },
                "required": ["amount", "booking_id"],
            },
            handler=generate_payment_link,
            arguments_model=GeneratePaymentLinkArgs,
        ),
    ]
