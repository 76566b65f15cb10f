from flask import Flask, jsonify

from elibrary.config import Config
from elibrary.extensions import db, migrate, jwt, mail
from elibrary.utils.clock import init_clock


def create_app(config_object=Config, clock=None):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # 1) db first (db.engine / db.session need it)
    db.init_app(app)

    # 2) the remaining extensions
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)

    # 3) wall clock; tests swap in a FixedClock
    init_clock(app, clock)

    # models must be imported for create_all / migrations to see them
    from elibrary import models  # noqa: F401

    # 4) API blueprints
    from elibrary.controllers.auth_controller import auth_bp
    from elibrary.controllers.book_controller import book_bp
    from elibrary.controllers.review_controller import review_bp
    from elibrary.controllers.borrowing_controller import borrowing_bp
    from elibrary.controllers.fine_controller import fine_bp
    from elibrary.controllers.notification_controller import notif_bp
    from elibrary.controllers.subscription_controller import subscription_bp
    from elibrary.controllers.admin_subscription_controller import admin_subscription_bp
    from elibrary.controllers.stats_controller import stats_bp
    from elibrary.controllers.profile_controller import profile_bp
    from elibrary.controllers.admin_user_controller import admin_user_bp
    from elibrary.controllers.admin_payment_controller import admin_payment_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(book_bp, url_prefix="/books")
    app.register_blueprint(review_bp)
    app.register_blueprint(borrowing_bp, url_prefix="/borrowings")
    app.register_blueprint(fine_bp, url_prefix="/profile/fines")
    app.register_blueprint(notif_bp, url_prefix="/notifications")
    app.register_blueprint(subscription_bp, url_prefix="/subscriptions")
    app.register_blueprint(admin_subscription_bp, url_prefix="/admin/subscriptions")
    app.register_blueprint(stats_bp, url_prefix="/stats")
    app.register_blueprint(profile_bp, url_prefix="/profile")
    app.register_blueprint(admin_user_bp, url_prefix="/admin/users")
    app.register_blueprint(admin_payment_bp, url_prefix="/admin/payments")

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    # Late check is on demand only: `flask late-check`
    from elibrary.tasks.late_check import register_cli
    register_cli(app)

    return app
