"""
Idempotent seed-скрипт.
Запуск:
  python seed.py                 # создать таблицы (sql) и наполнить, если справочник звонков пуст
  python seed.py --reset         # дропнуть и пересоздать БД + данные по умолчанию
  python seed.py --config prod   # выбрать конфиг (по умолчанию FLASK_CONFIG / dev)
"""
import argparse
import logging

from blueprints.directory.schemas import SCHEMAS

log = logging.getLogger(__name__)

# ---- данные по умолчанию ----
PERIODS = [
    {"number": 1, "startTime": "07:15", "endTime": "08:00", "name": "1. óra"},
    {"number": 2, "startTime": "08:10", "endTime": "08:55", "name": "2. óra"},
    {"number": 3, "startTime": "09:05", "endTime": "09:50", "name": "3. óra"},
    {"number": 4, "startTime": "10:00", "endTime": "10:45", "name": "4. óra"},
    {"number": 5, "startTime": "10:55", "endTime": "11:40", "name": "5. óra"},
    {"number": 6, "startTime": "11:50", "endTime": "12:35", "name": "6. óra"},
    {"number": 7, "startTime": "12:45", "endTime": "13:30", "name": "7. óra"},
    {"number": 8, "startTime": "13:40", "endTime": "14:25", "name": "8. óra"},
]

SUBJECTS = [
    {"name": "Magyar nyelv és irodalom", "shortName": "Magyar", "color": "#e74c3c"},
    {"name": "Matematika", "shortName": "Matek", "color": "#3498db"},
    {"name": "Történelem", "shortName": "Töri", "color": "#9b59b6"},
    {"name": "Angol nyelv", "shortName": "Angol", "color": "#1abc9c"},
    {"name": "Német nyelv", "shortName": "Német", "color": "#f39c12"},
    {"name": "Fizika", "shortName": "Fizika", "color": "#2ecc71"},
    {"name": "Kémia", "shortName": "Kémia", "color": "#e67e22"},
    {"name": "Biológia", "shortName": "Bio", "color": "#27ae60"},
    {"name": "Földrajz", "shortName": "Földrajz", "color": "#16a085"},
    {"name": "Informatika", "shortName": "Info", "color": "#8e44ad"},
    {"name": "Testnevelés", "shortName": "Tesi", "color": "#c0392b"},
    {"name": "Ének-zene", "shortName": "Ének", "color": "#d35400"},
    {"name": "Rajz és vizuális kultúra", "shortName": "Rajz", "color": "#f1c40f"},
    {"name": "Osztályfőnöki", "shortName": "Ofő", "color": "#34495e"},
]

CLASSES = [
    {"name": f"{grade}.{section}", "grade": grade, "section": section, "studentCount": count}
    for grade, section, count in [
        (9, "A", 28), (9, "B", 30), (9, "C", 27),
        (10, "A", 29), (10, "B", 31), (10, "C", 26),
        (11, "A", 25), (11, "B", 28),
        (12, "A", 24), (12, "B", 26),
    ]
]

ROOMS = [
    {"name": "101", "building": "A", "floor": 1, "capacity": 30, "type": "classroom"},
    {"name": "102", "building": "A", "floor": 1, "capacity": 30, "type": "classroom"},
    {"name": "103", "building": "A", "floor": 1, "capacity": 30, "type": "classroom"},
    {"name": "201", "building": "A", "floor": 2, "capacity": 30, "type": "classroom"},
    {"name": "202", "building": "A", "floor": 2, "capacity": 30, "type": "classroom"},
    {"name": "203", "building": "A", "floor": 2, "capacity": 30, "type": "classroom"},
    {"name": "Informatika 1", "building": "B", "floor": 1, "capacity": 20, "type": "computer"},
    {"name": "Informatika 2", "building": "B", "floor": 1, "capacity": 20, "type": "computer"},
    {"name": "Fizika labor", "building": "B", "floor": 2, "capacity": 25, "type": "lab"},
    {"name": "Kémia labor", "building": "B", "floor": 2, "capacity": 25, "type": "lab"},
    {"name": "Tornaterem", "building": "C", "floor": 0, "capacity": 60, "type": "gym"},
    {"name": "Könyvtár", "building": "A", "floor": 0, "capacity": 40, "type": "library"},
]

TEACHERS = [
    {"name": "Kovács Mária", "shortName": "KM", "email": "kovacs.maria@iskola.hu",
     "subjects": "Magyar nyelv és irodalom", "color": "#e74c3c"},
    {"name": "Nagy István", "shortName": "NI", "email": "nagy.istvan@iskola.hu",
     "subjects": "Matematika", "color": "#3498db"},
    {"name": "Szabó Anna", "shortName": "SZA", "email": "szabo.anna@iskola.hu",
     "subjects": "Történelem", "color": "#9b59b6"},
    {"name": "Tóth Péter", "shortName": "TP", "email": "toth.peter@iskola.hu",
     "subjects": "Angol nyelv", "color": "#1abc9c"},
    {"name": "Kiss Katalin", "shortName": "KK", "email": "kiss.katalin@iskola.hu",
     "subjects": "Német nyelv", "color": "#f39c12"},
    {"name": "Horváth János", "shortName": "HJ", "email": "horvath.janos@iskola.hu",
     "subjects": "Fizika", "color": "#2ecc71"},
    {"name": "Molnár Éva", "shortName": "ME", "email": "molnar.eva@iskola.hu",
     "subjects": "Kémia", "color": "#e67e22"},
    {"name": "Varga Gábor", "shortName": "VG", "email": "varga.gabor@iskola.hu",
     "subjects": "Biológia", "color": "#27ae60"},
    {"name": "Farkas Zoltán", "shortName": "FZ", "email": "farkas.zoltan@iskola.hu",
     "subjects": "Földrajz", "color": "#16a085"},
    {"name": "Balogh Tamás", "shortName": "BT", "email": "balogh.tamas@iskola.hu",
     "subjects": "Informatika", "color": "#8e44ad"},
    {"name": "Németh László", "shortName": "NL", "email": "nemeth.laszlo@iskola.hu",
     "subjects": "Testnevelés", "color": "#c0392b"},
    {"name": "Papp Judit", "shortName": "PJ", "email": "papp.judit@iskola.hu",
     "subjects": "Ének-zene", "color": "#d35400"},
]

DEFAULT_DATA = {
    "periods": PERIODS,
    "subjects": SUBJECTS,
    "classes": CLASSES,
    "rooms": ROOMS,
    "teachers": TEACHERS,
}


def seed_default_data(store) -> int:
    """Наполняет пустое хранилище; если звонки уже есть — ничего не делает."""
    if store.count_entities("periods") > 0:
        return 0
    created = 0
    for kind, rows in DEFAULT_DATA.items():
        schema_in, _ = SCHEMAS[kind]
        for raw in rows:
            store.create_entity(kind, schema_in.model_validate(raw).model_dump())
            created += 1
    log.info("seeded %d default records", created)
    return created


# ---- main ----
def main():
    from app import create_app
    from extensions import db

    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop + create + seed")
    parser.add_argument("--config", default=None, help="config name from config_map")
    args = parser.parse_args()

    app = create_app(args.config)
    with app.app_context():
        if app.config.get("ENTITY_STORE", "sql") != "sql":
            print("[seed] memory store is filled on startup, nothing to do")
            return
        if args.reset:
            db.drop_all()
        db.create_all()
        created = seed_default_data(app.extensions["entity_store"])
        print(f"[seed] {created} records created" if created else "[seed] data already present")


if __name__ == "__main__":
    main()
