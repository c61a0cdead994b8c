"""
crudkit: generic async repository and service layers over SQLAlchemy.

    engine = create_engine_from_settings(get_settings())
    session_factory = create_session_factory(engine)
    users = UserService(UserRepository(session_factory))
"""

__version__ = "0.1.0"
