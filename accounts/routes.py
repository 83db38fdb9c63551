from flask import Blueprint, flash, redirect, render_template, request, url_for

from .service import AccountError, get_current_user, log_in, log_out, sign_up

accounts_blueprint = Blueprint("accounts", __name__)


# ====== Sign Up ======
@accounts_blueprint.route("/signup", methods=["GET", "POST"])
def signup():
    if get_current_user():
        return redirect(url_for("daily.play"))

    if request.method == "POST":
        form = request.form
        try:
            user = sign_up(
                form.get("username", ""),
                form.get("email", ""),
                form.get("password", ""),
                form.get("confirmPassword", ""),
            )
        except AccountError as exc:
            return (
                render_template(
                    "accounts/signup.html",
                    errors=exc.errors,
                    username=form.get("username", ""),
                    email=form.get("email", ""),
                    user=None,
                ),
                exc.status_code,
            )
        flash(f"Account created for {user.get('username')}. Please log in.", "success")
        return redirect(url_for("accounts.login"))

    return render_template("accounts/signup.html", errors={}, user=None)


# ====== Log In ======
@accounts_blueprint.route("/login", methods=["GET", "POST"])
def login():
    if get_current_user():
        return redirect(url_for("daily.play"))

    if request.method == "POST":
        identifier = request.form.get("emailusername", "")
        try:
            user = log_in(identifier, request.form.get("password", ""))
        except AccountError as exc:
            return (
                render_template(
                    "accounts/login.html",
                    errors=exc.errors,
                    emailusername=identifier,
                    user=None,
                ),
                exc.status_code,
            )
        flash(f"Welcome back, {user.get('username') or 'Trainer'}!", "success")
        return redirect(url_for("daily.play"))

    return render_template("accounts/login.html", errors={}, user=None)


# ====== Log Out ======
@accounts_blueprint.route("/logout", methods=["POST"])
def logout():
    # The device id stays so anonymous history survives a logout.
    log_out()
    flash("You have been logged out.", "success")
    return redirect(url_for("daily.play"))
