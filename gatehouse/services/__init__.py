"""Integrations with the database, the session store and the mail relay."""
