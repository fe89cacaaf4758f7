from __future__ import annotations

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from flask import (
    Blueprint,
    Flask,
    abort,
    current_app,
    flash,
    g,
    redirect,
    render_template,
    request,
    url_for,
)
from markdown import markdown

import config
from admin import AdminWorkflow
from articles import Article, ArticleStore
from errors import (
    Corrupt,
    InvalidArgument,
    InvalidCredentials,
    NotFound,
    StorageUnavailable,
    Unauthenticated,
    ValidationError,
)
from logging_utils import setup_logging
from sessions import SessionRegistry

logger = logging.getLogger("app")

bp = Blueprint("blog", __name__)


def create_app(overrides: Optional[Dict] = None) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config)
    if overrides:
        app.config.update(overrides)
    app.secret_key = app.config["SECRET_KEY"]

    if not app.testing:
        setup_logging(app.config["LOG_LEVEL"])

    store = ArticleStore(
        Path(app.config["DATA_DIR"]),
        skip_corrupt=app.config["SKIP_CORRUPT_ARTICLES"],
    )
    sessions = SessionRegistry(app.config["TOKEN_LENGTH"])
    app.extensions["blog"] = AdminWorkflow(
        store,
        sessions,
        app.config["ADMIN_USER"],
        app.config["ADMIN_PASSWORD"],
    )

    app.jinja_env.filters["date"] = format_date
    app.jinja_env.filters["date_input"] = format_date_input
    app.jinja_env.filters["markdown"] = render_markdown
    app.register_blueprint(bp)
    return app


def workflow() -> AdminWorkflow:
    return current_app.extensions["blog"]


def session_token() -> Optional[str]:
    return request.cookies.get(current_app.config["ADMIN_COOKIE_NAME"])


def is_authenticated() -> bool:
    return workflow().sessions.is_valid(session_token())


def format_date(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime("%b %d, %Y")


def format_date_input(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime("%Y-%m-%d")


def render_markdown(md_text: str) -> str:
    return markdown(
        md_text or "",
        extensions=["fenced_code", "codehilite", "tables", "sane_lists"],
        output_format="html5",
    )


def form_values(article: Optional[Article]) -> Dict[str, str]:
    if article is None:
        return {"title": "", "content": "", "date": ""}
    return {
        "title": article.title,
        "content": article.content,
        "date": format_date_input(article.published),
    }


def safe_next(target: Optional[str]) -> Optional[str]:
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return None


def render_form(mode: str, form: Dict[str, str], article: Optional[Article] = None, error: str = ""):
    return render_template(
        "admin_edit.html",
        mode=mode,
        form=form,
        article=article,
        error=error,
    )


@bp.before_app_request
def start_timer():
    g.started = time.perf_counter()


@bp.after_app_request
def log_request(response):
    started = g.get("started")
    if started is not None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s %s %.1fms", request.method, request.path, response.status_code, elapsed_ms)
    return response


@bp.app_context_processor
def inject_globals():
    return {
        "site_title": current_app.config["SITE_TITLE"],
        "site_description": current_app.config["SITE_DESCRIPTION"],
        "is_authenticated": is_authenticated,
    }


@bp.app_errorhandler(NotFound)
def handle_not_found(exc):
    return render_template("error.html", status=404, message="Article not found"), 404


@bp.app_errorhandler(Unauthenticated)
def handle_unauthenticated(exc):
    target = request.path if request.method == "GET" else None
    return redirect(url_for("blog.admin_login", next=target))


@bp.app_errorhandler(StorageUnavailable)
@bp.app_errorhandler(Corrupt)
@bp.app_errorhandler(InvalidArgument)
def handle_storage_error(exc):
    logger.error("%s %s failed: %s", request.method, request.path, exc, exc_info=exc)
    return render_template("error.html", status=500, message="Internal server error"), 500


# -- public pages -------------------------------------------------------------


@bp.route("/")
def blog_index():
    articles = workflow().store.list()
    return render_template("blog_index.html", articles=articles)


@bp.route("/article/<slug>")
def blog_post(slug: str):
    article = workflow().store.load(slug)
    return render_template("blog_post.html", article=article)


# -- admin --------------------------------------------------------------------


@bp.route("/admin/login", methods=["GET", "POST"])
def admin_login():
    error = ""
    if request.method == "POST":
        try:
            token = workflow().login(
                request.form.get("username", ""),
                request.form.get("password", ""),
            )
        except InvalidCredentials as exc:
            error = str(exc)
        else:
            response = redirect(safe_next(request.args.get("next")) or url_for("blog.admin_posts"))
            response.set_cookie(
                current_app.config["ADMIN_COOKIE_NAME"],
                token,
                max_age=current_app.config["ADMIN_COOKIE_MAX_AGE"],
                path="/",
                httponly=True,
                samesite="Lax",
            )
            return response
    return render_template("admin_login.html", error=error)


@bp.route("/admin/logout")
def admin_logout():
    workflow().logout(session_token())
    response = redirect(url_for("blog.admin_login"))
    response.delete_cookie(current_app.config["ADMIN_COOKIE_NAME"], path="/", httponly=True)
    return response


@bp.route("/admin")
def admin_posts():
    articles = workflow().dashboard(session_token())
    return render_template("admin_posts.html", articles=articles)


@bp.route("/admin/new", methods=["GET", "POST"])
def admin_new_post():
    if request.method == "GET":
        workflow().authorize(session_token())
        return render_form("add", form_values(None))
    try:
        article = workflow().create(session_token(), request.form)
    except ValidationError as exc:
        return render_form("add", exc.form, error=exc.message)
    flash(f"Published “{article.title}”", "success")
    return redirect(url_for("blog.admin_posts"))


@bp.route("/admin/edit/<slug>", methods=["GET", "POST"])
def admin_edit_post(slug: str):
    if request.method == "GET":
        article = workflow().article_for_edit(session_token(), slug)
        return render_form("edit", form_values(article), article=article)
    try:
        article = workflow().edit(session_token(), slug, request.form)
    except ValidationError as exc:
        return render_form("edit", exc.form, article=exc.article, error=exc.message)
    flash(f"Saved “{article.title}”", "success")
    return redirect(url_for("blog.admin_posts"))


@bp.route("/admin/delete/", defaults={"slug": ""}, methods=["POST"])
@bp.route("/admin/delete/<slug>", methods=["POST"])
def admin_delete_post(slug: str):
    try:
        workflow().delete(session_token(), slug)
    except ValidationError:
        abort(400)
    flash("Article deleted", "success")
    return redirect(url_for("blog.admin_posts"))


app = create_app()


if __name__ == "__main__":
    app.run(host=config.HOST, port=config.PORT, debug=True, threaded=True)
