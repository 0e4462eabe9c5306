#!/usr/bin/env python
"""Walk through the counter workflow against a running store.

Start the stand-in store first: ``python -m pharmacy.main``
"""
import logging

from pharmacy.config import Settings
from pharmacy.service import PharmacyService
from sheetdb.client import SheetDBClient

def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    settings = Settings.from_env()
    c = SheetDBClient(settings.sheetdb_url, api_key=settings.api_key, timeout=settings.timeout)
    service = PharmacyService(c, settings)

    # -----------------------------
    # Load inventory
    # -----------------------------
    print("Loading inventory...")
    print(service.reload())

    # -----------------------------
    # Add products
    # -----------------------------
    print("\nAdding products...")
    print(service.create_product("Paracetamol 500mg", "12.50", "0", "100"))
    print(service.create_product("Amoxicillin 250mg", "100", "10", "5"))
    for p in service.products:
        print(" ", p)

    # -----------------------------
    # Sell
    # -----------------------------
    amox = next(p for p in service.products if p.name.startswith("Amoxicillin"))
    print("\nSelling 3 x Amoxicillin...")
    sale = service.sell(amox.id, 3)
    print(sale.message or "sold")
    print(service.render_last_invoice())

    print("Trying to sell 3 more (only 2 left)...")
    print(service.sell(amox.id, 3).message)

    # -----------------------------
    # Remove
    # -----------------------------
    print("\nRemoving Amoxicillin...")
    print(service.delete_product(amox.id).message)
    print("Remaining:", [p.name for p in service.products])

if __name__ == "__main__":
    main()
