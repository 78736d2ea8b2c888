NEARBY_PLACES_HEADER = "Have you visited any of these places?"

TRIP_FETCH_NOTICE = "Fetching your {trip_name} trip data..."

# Trip chips offered with the greeting
TRIP_CHOICES = [
    ("vietnam", "Trip", "Vietnam"),
    ("leh", "Scenic", "Leh"),
    ("pondicherry", "Trip", "Pondicherry"),
]


WALK_SUMMARY_PROMPT = """Write a short, friendly travel blog post about my trip.
Here are the stops in order and the nearby places I visited at each one:

{legs}

Mention the places I visited and keep it under 300 words.
"""
