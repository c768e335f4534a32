"""Receiving sessions as sent by the warehouse app."""

MIXED_ITEM = {
    "itemNumber": "WIDGET-001",
    "fullPallets": 2,
    "casesPerPallet": 40,
    "partialCases": 15,
    "mixedPallet": True,
    "mixedPalletQty": 8,
    "condition": "ok",
    "notes": "",
}

DAMAGED_ITEM = {
    "itemNumber": "GADGET-002",
    "fullPallets": 1,
    "casesPerPallet": 30,
    "partialCases": 5,
    "mixedPallet": False,
    "mixedPalletQty": 0,
    "condition": "damaged",
    "notes": "Crushed corner",
}

SESSION = {
    "customerId": "42",
    "containerNumber": "MSCU1234567",
    "poNumber": "PO-7788",
    "startedBy": "Dana",
    "startedAt": "2026-10-19T08:00:00Z",
    "completedAt": "2026-10-19T09:30:00Z",
    "reviewNotes": "Two pallets re-wrapped",
    "type": "normal",
    "items": [MIXED_ITEM, DAMAGED_ITEM],
}

BLIND_SESSION = {
    "customerId": "42",
    "containerNumber": "",
    "poNumber": "",
    "startedBy": "Lee",
    "startedAt": None,
    "completedAt": None,
    "reviewNotes": "",
    "type": "blind",
    "items": [
        {"itemNumber": "BOLT-9", "fullPallets": 0, "casesPerPallet": 0, "partialCases": 12},
    ],
}
