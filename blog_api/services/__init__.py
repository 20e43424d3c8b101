# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for one concern:
#
#   auth_service: registration and login (password hashing, tokens)
#   feed_service: post CRUD + the moderation workflow
#   user_service: user directory and admin role assignment
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency. Failures are raised as ``blog_api.exceptions``
# errors and serialised by the handlers in ``blog_api.main``.
