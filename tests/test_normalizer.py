import json
import pytest
from travel_assistant.errors import MalformedResponse
from travel_assistant.models import LocationKind
from travel_assistant.normalizer import normalize_completion, strip_fences

PAYLOAD = json.dumps({
    "location": "Lisbon, Portugal",
    "placesOfInterest": [
        {"name": "Time Out Market", "description": "Food hall", "type": "restaurant", "priceRange": "budget"},
    ],
})


@pytest.mark.parametrize("wrapped", [
    PAYLOAD,
    f"```json\n{PAYLOAD}\n```",
    f"```JSON {PAYLOAD}```",
    f"```\n{PAYLOAD}\n```",
    f"`{PAYLOAD}`",
    f"`json{PAYLOAD}`",
    f"\n\n   ```json\n{PAYLOAD}\n```   \n",
    f"```json\n`{PAYLOAD}`\n```",
    f"```json\n```json\n{PAYLOAD}\n```\n```",
])
def test_fence_variants_yield_the_same_json(wrapped):
    assert strip_fences(wrapped) == PAYLOAD
    assert strip_fences(strip_fences(wrapped)) == PAYLOAD


def test_normalizes_lisbon_answer():
    answer = normalize_completion(f"```json\n{PAYLOAD}\n```")

    assert answer.location == "Lisbon, Portugal"
    assert answer.kind == LocationKind.KNOWN
    assert answer.destination == "Lisbon, Portugal"
    place = answer.places_of_interest[0]
    assert place.name == "Time Out Market"
    assert place.type == "restaurant"
    assert place.price_range == "budget"
    assert place.experience is None


def test_location_is_trimmed():
    answer = normalize_completion('{"location": "  Paris, France ", "placesOfInterest": []}')

    assert answer.destination == "Paris, France"


def test_not_travel_related_drops_places():
    raw = json.dumps({
        "location": "not_travel_related",
        "placesOfInterest": [{"name": "Somewhere", "description": "should vanish"}],
    })
    answer = normalize_completion(raw)

    assert answer.kind == LocationKind.UNRELATED
    assert answer.destination is None
    assert answer.places_of_interest == []


@pytest.mark.parametrize("places", [
    [{"description": "no name"}],
    ["Louvre"],
    [{"name": ""}, 42, None],
])
def test_not_travel_related_ignores_invalid_entries(places):
    raw = json.dumps({"location": " not_travel_related ", "placesOfInterest": places})
    answer = normalize_completion(raw)

    assert answer.kind == LocationKind.UNRELATED
    assert answer.places_of_interest == []


def test_null_location_is_unstated():
    answer = normalize_completion('{"location": "null", "placesOfInterest": []}')

    assert answer.kind == LocationKind.UNSTATED
    assert answer.destination is None


@pytest.mark.parametrize("raw", [
    '{"placesOfInterest": []}',
    '{"location": "Paris, France"}',
    '{"location": 42, "placesOfInterest": []}',
    '{"location": "Paris, France", "placesOfInterest": {"name": "Louvre"}}',
    '{"location": "", "placesOfInterest": []}',
    '{"location": "   ", "placesOfInterest": [{"name": "Louvre"}]}',
    '{"location": "\\t\\n", "placesOfInterest": []}',
    '[{"location": "Paris, France", "placesOfInterest": []}]',
    '{"location": "Paris, France", "placesOfInterest": [{"description": "no name"}]}',
    '{"location": "Paris, France", "placesOfInterest": ["Louvre"]}',
    '{"location": "Paris, France", "placesOfInterest": [',
    "Sure! Here are some places in Paris: the Louvre and the Eiffel Tower.",
    "",
])
def test_rejects_anything_but_the_full_shape(raw):
    with pytest.raises(MalformedResponse) as exc:
        normalize_completion(raw)
    assert exc.value.raw_text == raw
    assert exc.value.status_code == 500


def test_malformed_response_exposes_raw_text():
    raw = "```json\n{not json}\n```"
    with pytest.raises(MalformedResponse) as exc:
        normalize_completion(raw)
    assert exc.value.to_dict() == {"error": exc.value.message, "raw": raw}


def test_unknown_enum_values_are_dropped():
    raw = json.dumps({
        "location": "Paris, France",
        "placesOfInterest": [{
            "name": "Musée d'Orsay",
            "description": None,
            "type": "Museum",
            "priceRange": "Moderate",
            "experience": "TOURIST",
        }],
    })
    place = normalize_completion(raw).places_of_interest[0]

    assert place.description == ""
    assert place.type is None
    assert place.price_range == "moderate"
    assert place.experience == "tourist"
