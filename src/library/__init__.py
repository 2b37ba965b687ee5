"""Book collection logic: view derivation, language reconciliation, service facade."""
