import random
import sys
from .config import settings
from supabase import create_client, Client

# Procedural Generation Lists
cities = [
    ("Paris", "FR"), ("Lisbon", "PT"), ("London", "GB"), ("Rome", "IT"),
    ("Barcelona", "ES"), ("Amsterdam", "NL"), ("Berlin", "DE"), ("Tokyo", "JP"),
    ("New York", "US"), ("Montréal", "CA"), ("Zürich", "CH"), ("Kraków", "PL"),
]

adjectives = [
    "Grand", "Cozy", "Royal", "Urban", "Seaside", "Hidden",
    "Modern", "Vintage", "Golden", "Silver", "Crystal", "Sunset", "Château",
]

nouns = [
    "Plaza", "Hôtel", "Inn", "Resort", "Lodge", "Suites",
    "Palace", "Hostel", "Haven", "Maison", "Stay",
]

amenity_groups_pool = {
    "General": ["24-hour reception", "Elevator", "Air conditioning", "Non-smoking rooms"],
    "Internet": ["Free Wi-Fi", "Wi-Fi in public areas"],
    "Meals": ["Breakfast", "Restaurant", "Bar", "Room service"],
    "Pool and beach": ["Outdoor pool", "Beach access"],
    "Wellness": ["Spa", "Sauna", "Fitness center"],
    "Parking": ["Private parking", "Valet parking"],
}

streets = ["Rue de la Paix", "Main Street", "Avenida da Liberdade", "Via del Corso", "High Street"]

def generate_hotels(count=100):
    hotels = []
    used_names = set()

    for _ in range(count):
        city, country_code = random.choice(cities)

        # Generate Name, unique per city
        while True:
            name = f"{random.choice(adjectives)} {random.choice(nouns)} {city}"
            if name not in used_names:
                used_names.add(name)
                break

        groups = random.sample(list(amenity_groups_pool), random.randint(2, len(amenity_groups_pool)))
        amenity_groups = [
            {"group_name": g, "amenities": random.sample(amenity_groups_pool[g], random.randint(1, len(amenity_groups_pool[g])))}
            for g in groups
        ]

        hotels.append({
            "name": name,
            "region": {"type": "City", "name": city, "country_code": country_code},
            "address": f"{random.randint(1, 200)} {random.choice(streets)}, {city}",
            "images": [f"https://cdn.example.com/hotels/{len(hotels)}/{{size}}.jpg"],
            "amenity_groups": amenity_groups,
            "description_struct": [
                {
                    "title": "Location",
                    "paragraphs": [f"The {name} is a short walk from the centre of {city}."],
                },
                {
                    "title": "Rooms",
                    "paragraphs": [random.choice([
                        "Perfect for relaxation.", "Ideal for business.", "Great for families.",
                        "A romantic getaway.", "Budget friendly choice.",
                    ])],
                },
            ],
            "star_rating": random.randint(1, 5),
        })
    return hotels

def seed_data(supabase: Client, count=100, batch_size=20):
    print(f"Generating {count} hotels...")
    hotels_data = generate_hotels(count)

    print(f"Seeding data to Supabase table '{settings.HOTELS_TABLE}'...")
    # Insert in batches to be efficient
    for i in range(0, len(hotels_data), batch_size):
        batch = hotels_data[i:i+batch_size]
        try:
            supabase.table(settings.HOTELS_TABLE).insert(batch).execute()
            print(f"Inserted batch {i//batch_size + 1}/{-(-len(hotels_data)//batch_size)}")
        except Exception as e:
            print(f"Failed to insert batch: {e}")

    print("Seeding complete!")

def main():
    url, key = settings.SUPABASE_URL, settings.SUPABASE_KEY
    if not url or not key or "your_supabase_url" in url:
        print("Error: SUPABASE_URL and SUPABASE_KEY must be set in .env")
        sys.exit(1)
    seed_data(create_client(url, key))

if __name__ == "__main__":
    main()
