"""Seed rows shared by the persistence tests."""

from decimal import Decimal

ANN = {"name": "Ann", "address": "addr", "phone_number": "555"}
BOB = {"name": "Bob", "address": "12 Harbour Rd", "phone_number": "555-0101"}
CARLA = {"name": "Carla", "address": "7 Hill St", "phone_number": "777-0199"}

DAN = {"name": "Dan", "phone_number": "900-1000"}
EVE = {"name": "Eve", "phone_number": "900-2000"}

WIDGET = {"name": "Widget", "price": Decimal("9.99")}
GADGET = {"name": "Gadget", "price": Decimal("4.50")}
SPROCKET = {"name": "Sprocket", "price": Decimal("12.00")}
