"""ICS documents used across parser, pipeline and server tests."""

SINGLE_EVENT_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Hearthboard Test//EN
BEGIN:VEVENT
UID:single-001@hearthboard.test
DTSTAMP:20240601T000000Z
DTSTART:20240603T150000Z
DTEND:20240603T160000Z
SUMMARY:Dentist
LOCATION:Main St Clinic
DESCRIPTION:Annual checkup
END:VEVENT
END:VCALENDAR
"""

# Weekly Monday 07:30-08:30 Chicago time, starting Monday 2024-05-06.
WEEKLY_MONDAY_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Hearthboard Test//EN
BEGIN:VEVENT
UID:weekly-001@hearthboard.test
DTSTAMP:20240501T000000Z
DTSTART;TZID=America/Chicago:20240506T073000
DTEND;TZID=America/Chicago:20240506T083000
RRULE:FREQ=WEEKLY;BYDAY=MO
SUMMARY:Swim Practice
END:VEVENT
END:VCALENDAR
"""

# Daily 09:00 UTC since 2020 with no end.
DAILY_FOREVER_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Hearthboard Test//EN
BEGIN:VEVENT
UID:daily-001@hearthboard.test
DTSTAMP:20200101T000000Z
DTSTART:20200101T090000Z
DTEND:20200101T091500Z
RRULE:FREQ=DAILY
SUMMARY:Feed the cat
END:VEVENT
END:VCALENDAR
"""

# Daily 18:00 UTC June 1-5 with June 3 excluded, June 4 moved to 20:00 and
# June 5 cancelled.
DAILY_WITH_EXCEPTIONS_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Hearthboard Test//EN
BEGIN:VEVENT
UID:dinner-001@hearthboard.test
DTSTAMP:20240501T000000Z
DTSTART:20240601T180000Z
DTEND:20240601T190000Z
RRULE:FREQ=DAILY;UNTIL=20240605T180000Z
EXDATE:20240603T180000Z
SUMMARY:Family Dinner
END:VEVENT
BEGIN:VEVENT
UID:dinner-001@hearthboard.test
DTSTAMP:20240501T000000Z
RECURRENCE-ID:20240604T180000Z
DTSTART:20240604T200000Z
DTEND:20240604T210000Z
SUMMARY:Family Dinner (late)
END:VEVENT
BEGIN:VEVENT
UID:dinner-001@hearthboard.test
DTSTAMP:20240501T000000Z
RECURRENCE-ID:20240605T180000Z
DTSTART:20240605T180000Z
DTEND:20240605T190000Z
STATUS:CANCELLED
SUMMARY:Family Dinner
END:VEVENT
END:VCALENDAR
"""

ALL_DAY_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Hearthboard Test//EN
BEGIN:VEVENT
UID:allday-001@hearthboard.test
DTSTAMP:20240501T000000Z
DTSTART;VALUE=DATE:20240602
DTEND;VALUE=DATE:20240603
SUMMARY:Farmers Market
END:VEVENT
BEGIN:VEVENT
UID:allday-002@hearthboard.test
DTSTAMP:20240501T000000Z
DTSTART;VALUE=DATE:20240604
SUMMARY:Trash Day
END:VEVENT
END:VCALENDAR
"""

UNTITLED_EVENT_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Hearthboard Test//EN
BEGIN:VEVENT
UID:untitled-001@hearthboard.test
DTSTAMP:20240501T000000Z
DTSTART:20240602T100000Z
DTEND:20240602T110000Z
LOCATION:
END:VEVENT
END:VCALENDAR
"""

PAST_EVENT_ICS = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Hearthboard Test//EN
BEGIN:VEVENT
UID:past-001@hearthboard.test
DTSTAMP:20240501T000000Z
DTSTART:20240520T100000Z
DTEND:20240520T110000Z
SUMMARY:Already happened
END:VEVENT
BEGIN:VEVENT
UID:ongoing-001@hearthboard.test
DTSTAMP:20240501T000000Z
DTSTART:20240601T110000Z
DTEND:20240601T130000Z
SUMMARY:In progress
END:VEVENT
END:VCALENDAR
"""

NOT_ICS_TEXT = "<html><body>Sign in required</body></html>"
