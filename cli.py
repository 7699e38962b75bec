import argparse
import dataclasses
import getpass
import json
import os
import sys
import uuid as _uuid
from typing import Any, Dict, List, Optional

from config.settings import get_settings
from models.hcp_profile import HcpStatus
from models.upload import LocalFile
from pipelines.import_profiles import import_profiles
from services.admin_panel import AdminPanel, create_admin_panel
from services.errors import AuthRequired, BackendError, ConfigurationMissing, HcpAdminError, ValidationFailure
from services.profile_form import ProfileForm
from services.reporting import format_upload_event, print_import_summary, print_profile, print_profiles
from utils.logging_setup import init_logging


def _fail(message: str) -> None:
    print(message, file=sys.stderr)
    sys.exit(1)


def _settings_for(args):
    settings = get_settings()
    overrides = {}
    if getattr(args, "backend", None):
        overrides["backend"] = args.backend
    if getattr(args, "db", None):
        overrides["db_path"] = args.db
    return dataclasses.replace(settings, **overrides) if overrides else settings


def _panel(args) -> AdminPanel:
    return create_admin_panel(_settings_for(args))


def _signed_in_panel(args) -> AdminPanel:
    panel = _panel(args)
    panel.gate.require_access()
    return panel


def _parse_assignments(pairs: Optional[List[str]]) -> Dict[str, Any]:
    """Turn ['fullName=Jane', 'languagesSpoken=English, Luganda'] into a dict."""
    out: Dict[str, Any] = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValidationFailure([f"Expected FIELD=VALUE, got '{pair}'"])
        key, value = pair.split("=", 1)
        out[key.strip()] = value
    return out


def _read_password(args) -> str:
    if getattr(args, "password", None):
        return args.password
    env_password = os.getenv("HCP_ADMIN_PASSWORD")
    if env_password:
        return env_password
    return getpass.getpass("Password: ")


def _print_event(event) -> None:
    print(format_upload_event(event))


def _fill_form(form: ProfileForm, args) -> None:
    fields: Dict[str, Any] = {}
    if getattr(args, "file", None):
        with open(args.file, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValidationFailure([f"{args.file} must contain a JSON object"])
        fields.update(data)
    fields.update(_parse_assignments(getattr(args, "set", None)))
    for key, value in fields.items():
        form.set_field(key, value)
    if getattr(args, "photo", None):
        form.pick_photo(LocalFile.from_path(args.photo))
        session = form.upload_photo(_print_event)
        if session.error:
            _fail(session.error)


def _submit(form: ProfileForm, panel: AdminPanel) -> str:
    record_id = form.submit()
    if record_id is None:
        _fail(form.error or "Save failed.")
    print(form.success)
    panel.form_saved()
    if panel.error:
        print(panel.error, file=sys.stderr)
    return record_id


def cmd_check_config(args):
    settings = _settings_for(args)
    panel = create_admin_panel(settings)
    state = panel.gate.state
    print(f"Backend: {settings.backend}")
    if settings.backend == "firebase":
        missing = settings.missing_firebase_settings()
        print("Missing settings: " + (", ".join(missing) if missing else "none"))
    if state.disabled_reason:
        _fail(state.disabled_reason)
    print("Configuration OK")


def cmd_login(args):
    panel = _panel(args)
    if not panel.login(args.email, _read_password(args)):
        _fail(panel.login_error or "Sign-in failed.")
    print(f"Signed in as {panel.gate.identity.email}")


def cmd_logout(args):
    panel = _panel(args)
    panel.logout()
    print("Signed out")


def cmd_whoami(args):
    panel = _panel(args)
    state = panel.gate.state
    if state.disabled_reason:
        _fail(state.disabled_reason)
    if not state.is_authenticated:
        _fail(AuthRequired().message)
    print(f"{state.identity.email} ({state.identity.id})")


def cmd_list(args):
    panel = _signed_in_panel(args)
    records = panel.refresh()
    if panel.error:
        _fail(panel.error)
    if args.json:
        out = [r.model_dump(by_alias=True, mode="json", exclude_none=True) for r in records]
        print(json.dumps(out, indent=2, ensure_ascii=False))
        return
    print_profiles(records)


def cmd_show(args):
    panel = _signed_in_panel(args)
    panel.refresh()
    if panel.error:
        _fail(panel.error)
    record = panel.workflow.get(args.id)
    if record is None:
        _fail(f"Profile {args.id} not found.")
    print_profile(record)


def cmd_create(args):
    panel = _signed_in_panel(args)
    form = panel.open_new()
    _fill_form(form, args)
    record_id = _submit(form, panel)
    print(record_id)


def _open_existing(panel: AdminPanel, record_id: str) -> ProfileForm:
    panel.refresh()
    if panel.error:
        _fail(panel.error)
    form = panel.open_edit(record_id)
    if form is None:
        _fail(panel.error or f"Profile {record_id} not found.")
    return form


def cmd_update(args):
    panel = _signed_in_panel(args)
    form = _open_existing(panel, args.id)
    _fill_form(form, args)
    if not form.changed_fields():
        print("Nothing to update")
        return
    _submit(form, panel)


def cmd_set_status(args):
    panel = _signed_in_panel(args)
    form = _open_existing(panel, args.id)
    form.set_field("internalStatus", args.status)
    _submit(form, panel)


def cmd_delete(args):
    panel = _signed_in_panel(args)

    def _confirm(question: str) -> bool:
        if args.yes:
            return True
        answer = input(f"{question} [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    deleted = panel.delete(args.id, _confirm)
    if panel.error:
        _fail(panel.error)
    print("Deleted" if deleted else "Cancelled")


def cmd_upload(args):
    panel = _signed_in_panel(args)
    local_file = LocalFile.from_path(args.path, content_type=args.content_type)
    if args.profile:
        form = _open_existing(panel, args.profile)
    else:
        form = panel.open_new()
    form.pick_photo(local_file)
    session = form.upload_photo(_print_event)
    if session.error:
        _fail(session.error)
    if args.profile:
        _submit(form, panel)


def cmd_import(args):
    panel = _signed_in_panel(args)
    ctx = import_profiles(panel.workflow, args.input, on_processed=lambda n: print(f"Created {n} profile(s)..."))
    print_import_summary(ctx.meta, source=ctx.source)
    if ctx.meta.get("failed"):
        sys.exit(1)


def cmd_add_admin(args):
    settings = _settings_for(args)
    if settings.backend != "local":
        _fail("add-admin is only available for the local backend; manage Firebase users in the Firebase console.")
    panel = create_admin_panel(settings)
    services = panel.gate.services
    if services is None:
        reason = panel.gate.disabled_reason
        _fail(reason.message if reason else ConfigurationMissing().message)
    try:
        user_id = services.identity.add_admin(args.email, _read_password(args))
    except BackendError as exc:
        _fail(exc.message)
    print(f"Admin {args.email} created ({user_id})")


def main():
    try:
        settings = get_settings()
    except ConfigurationMissing as exc:
        _fail(exc.message)
    init_logging(settings.log_level)
    if not os.getenv("RUN_ID"):
        os.environ["RUN_ID"] = _uuid.uuid4().hex

    parser = argparse.ArgumentParser(description="HCP profile admin CLI")
    parser.add_argument("--backend", choices=["firebase", "local"], default=None,
                        help="Backend to use (default from HCP_BACKEND)")
    parser.add_argument("--db", default=None, help="SQLite path for the local backend (default from settings)")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_chk = sub.add_parser("check-config", help="Report whether the backend is configured")
    p_chk.set_defaults(func=cmd_check_config)

    p_in = sub.add_parser("login", help="Sign in with email and password")
    p_in.add_argument("--email", required=True)
    p_in.add_argument("--password", help="Password (default: HCP_ADMIN_PASSWORD or prompt)")
    p_in.set_defaults(func=cmd_login)

    p_out = sub.add_parser("logout", help="Sign out and forget the stored session")
    p_out.set_defaults(func=cmd_logout)

    p_who = sub.add_parser("whoami", help="Show the signed-in admin")
    p_who.set_defaults(func=cmd_whoami)

    p_ls = sub.add_parser("list", help="List HCP profiles")
    p_ls.add_argument("--json", action="store_true", help="Print stored documents as JSON")
    p_ls.set_defaults(func=cmd_list)

    p_show = sub.add_parser("show", help="Show one HCP profile")
    p_show.add_argument("id")
    p_show.set_defaults(func=cmd_show)

    p_new = sub.add_parser("create", help="Create an HCP profile")
    p_new.add_argument("--set", action="append", metavar="FIELD=VALUE", help="Field value (repeatable)")
    p_new.add_argument("--file", help="JSON object with profile fields")
    p_new.add_argument("--photo", help="Profile picture to upload and attach")
    p_new.set_defaults(func=cmd_create)

    p_upd = sub.add_parser("update", help="Update fields of an HCP profile (merge)")
    p_upd.add_argument("id")
    p_upd.add_argument("--set", action="append", metavar="FIELD=VALUE", help="Field value (repeatable)")
    p_upd.add_argument("--file", help="JSON object with profile fields")
    p_upd.add_argument("--photo", help="Profile picture to upload and attach")
    p_upd.set_defaults(func=cmd_update)

    p_st = sub.add_parser("set-status", help="Change a profile's internal status")
    p_st.add_argument("id")
    p_st.add_argument("status", choices=[s.value for s in HcpStatus])
    p_st.set_defaults(func=cmd_set_status)

    p_del = sub.add_parser("delete", help="Delete an HCP profile permanently")
    p_del.add_argument("id")
    p_del.add_argument("--yes", action="store_true", help="Skip the confirmation question")
    p_del.set_defaults(func=cmd_delete)

    p_up = sub.add_parser("upload", help="Upload a profile picture")
    p_up.add_argument("path")
    p_up.add_argument("--profile", help="Attach the uploaded picture to this profile id")
    p_up.add_argument("--content-type", default=None, help="Override the guessed MIME type")
    p_up.set_defaults(func=cmd_upload)

    p_imp = sub.add_parser("import", help="Bulk-create profiles from a JSON file")
    p_imp.add_argument("input", help="JSON array of profiles or {\"profiles\": [...]}")
    p_imp.set_defaults(func=cmd_import)

    p_adm = sub.add_parser("add-admin", help="Create an admin account (local backend only)")
    p_adm.add_argument("--email", required=True)
    p_adm.add_argument("--password", help="Password (default: HCP_ADMIN_PASSWORD or prompt)")
    p_adm.set_defaults(func=cmd_add_admin)

    args = parser.parse_args()
    try:
        args.func(args)
    except HcpAdminError as exc:
        _fail(exc.message)
    except (OSError, json.JSONDecodeError) as exc:
        _fail(str(exc))


if __name__ == "__main__":
    main()
