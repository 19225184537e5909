SAMPLE_MEETING = {
    "organizer_name": "Alice Martin",
    "organizer_email": "alice@example.com",
    "organizer_timezone": "Europe/London",
    "meeting_type": "ONE_TIME",
    "date_range_start": "2025-03-10T00:00:00Z",
    "date_range_end": "2025-03-12T00:00:00Z",
    "slot_duration": 30,
    "expected_participants": 3,
}

SAMPLE_PARTICIPANTS = [
    {
        "name": "Alice Martin",
        "email": "alice@example.com",
        "timezone": "Europe/London",
        "availability": [
            {"start": "2025-03-10T14:00:00Z", "end": "2025-03-10T14:30:00Z"},
            {"start": "2025-03-10T14:30:00Z", "end": "2025-03-10T15:00:00Z"},
            {"start": "2025-03-11T09:00:00Z", "end": "2025-03-11T09:30:00Z"},
        ],
    },
    {
        "name": "Bo Chen",
        "email": "bo@example.com",
        "timezone": "Asia/Shanghai",
        "availability": [
            {"start": "2025-03-10T14:00:00Z", "end": "2025-03-10T14:30:00Z"},
            {"start": "2025-03-11T01:00:00Z", "end": "2025-03-11T01:30:00Z"},
        ],
    },
    {
        "name": "Carmen Diaz",
        "email": "carmen@example.com",
        "timezone": "America/New_York",
        "availability": [
            {"start": "2025-03-10T14:00:00Z", "end": "2025-03-10T14:30:00Z"},
            {"start": "2025-03-10T14:30:00Z", "end": "2025-03-10T15:00:00Z"},
        ],
    },
]
