"""The spee.ch server application.

This package composes the web application: configuration, logging, the
middleware chain, session authentication, the view engine, the route
collections and the startup sequence that syncs the database schema before
the listener is bound.

Notes:
    1. ``app.main.create_app`` builds the application from a ServerConfiguration.
    2. ``app.server.SpeechServer`` runs the two-phase startup.
    3. No disk, network, or database access occurs in this module directly.

"""
