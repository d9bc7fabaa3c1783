#!/usr/bin/env python3
# Example usage of embedded_json_db_engine

from embedded_json_db_engine import (
    Database,
    DocumentNotFound,
    console_error_printer,
    console_progress_printer,
)

# Minimal demo schema: a user with name, age, city, flags and a signup date
SCHEMA = {
    "name": {"type": "str", "required": True},
    "age": {"type": "number", "required": True, "default": 0},
    "city": {"type": "str"},
    "flags": {"type": "object"},
    "signedUp": {"type": "datetime"},
}

def main() -> None:
    # Collections live as demo_data/<name>.json
    db = Database("demo_data", on_progress=console_progress_printer(), on_error=console_error_printer())
    users = db.model("users", SCHEMA)

    alice = users.create_one({"name": "Alice", "age": 33, "city": "Wien", "signedUp": "2024-03-01T10:00:00Z"})
    print("Created:", alice)

    users.insert_many([
        {"name": "Bob", "age": 17, "city": "Graz"},
        {"name": "Carol", "age": 41, "city": "Wien", "flags": {"admin": True}},
        {"name": "Dan"},
    ])

    adults = users.find({"age": {"$gte": 18}}).sort({"age": -1}).select({"name": 1, "age": 1}).exec()
    print("Adults, oldest first:", adults)

    print("Cities:", users.find().distinct("city").exec())
    print("Users in Wien:", users.find({"city": "Wien"}).count().exec())

    updated = users.find_one_and_update({"id": alice["id"]}, {"age": 34})
    print("Updated:", updated)

    try:
        users.find_and_delete_one({"name": "Nobody"})
    except DocumentNotFound:
        print("Nobody to delete")

    remaining = users.delete_many({"age": {"$lte": 17}})
    print("Remaining after deleting minors:", len(remaining))

if __name__ == "__main__":
    main()
