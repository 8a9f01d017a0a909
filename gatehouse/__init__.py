"""
Gatehouse authentication service.

Gatehouse is a Flask application that establishes a user's identity, keeps
it across requests, and mints new accounts. It sits in front of a
PostgreSQL database (which owns the user schema, password hashing and the
``login`` / ``really_create_user`` functions), a Redis session store, and
an SMTP relay.

When a user logs in, the submitted credentials are checked by the database
via :mod:`gatehouse.services.users`. On success a new session is registered
in the distributed keystore (:mod:`gatehouse.services.sessions`), and its
opaque session ID is issued to the browser as an ``HttpOnly`` cookie. Only
the user ID lives in the session record; on each subsequent request the
user is re-read from the database (see :class:`gatehouse.auth.Auth`), so a
deleted user can never ride on a live session.

New accounts are created by the registration sequence in
:mod:`gatehouse.process.registration`, which checks for conflicting
usernames and e-mail addresses, creates the user, and sends an activation
e-mail.
"""
