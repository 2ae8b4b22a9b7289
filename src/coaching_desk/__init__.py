"""Coaching desk package.

Organized by feature modules (users, management, roster, attendance) with a thin
Flask controller layer over service/repository layers backed by MongoDB.
"""
