"""
Unit tests for the email body normalizer.
"""
from job_forwarder.profiles import MINDLANCE_PROFILE, MVP_PROFILE
from job_forwarder.utils.cleaning import (
    FOOTER_MARKERS,
    JOB_START_MARKERS,
    clean_email_body,
    collapse_blank_lines,
    find_marker,
    strip_forward_headers,
)


# ---------------------------------------------------------------------------
# Start truncation
# ---------------------------------------------------------------------------

class TestStartTruncation:

    def test_list_priority_beats_document_position(self):
        body = "Hello team\nNeed: Java Developer\nDUE DATE: 5/1\nDetails here"
        cleaned = clean_email_body(body)

        # DUE DATE is first in the marker list, so it wins even though Need: comes first in the text.
        assert cleaned == "DUE DATE: 5/1\nDetails here"
        assert "Need:" not in cleaned

    def test_earliest_policy_keeps_first_positioned_marker(self):
        body = "Hello team\nNeed: Java Developer\nDUE DATE: 5/1\nDetails here"
        cleaned = clean_email_body(body, marker_policy="earliest")

        assert cleaned.startswith("Need: Java Developer")
        assert "DUE DATE: 5/1" in cleaned

    def test_markers_are_case_insensitive(self):
        assert clean_email_body("Intro text\njob title: Analyst") == "job title: Analyst"

    def test_no_marker_leaves_body(self):
        assert clean_email_body("Just a note\nwith no posting") == "Just a note\nwith no posting"

    def test_find_marker_returns_none_without_match(self):
        assert find_marker("nothing here", JOB_START_MARKERS) is None

    def test_find_marker_priority_offset(self):
        text = "Role: x\nPOSITION: y"
        assert find_marker(text, JOB_START_MARKERS) == text.index("POSITION:")
        assert find_marker(text, JOB_START_MARKERS, "earliest") == 0


# ---------------------------------------------------------------------------
# Footer truncation
# ---------------------------------------------------------------------------

class TestFooterTruncation:

    def test_cuts_confidentiality_notice(self):
        body = "Role: Dev\nDetails\nCONFIDENTIALITY NOTICE: do not share\nmore legal text"
        assert clean_email_body(body) == "Role: Dev\nDetails"

    def test_footer_priority_beats_document_position(self):
        body = "Role: Dev\nUnsubscribe here\nCONFIDENTIALITY NOTICE: blah"
        # CONFIDENTIALITY NOTICE ranks above Unsubscribe in the footer list.
        assert clean_email_body(body) == "Role: Dev\nUnsubscribe here"

    def test_footer_marker_must_start_a_line(self):
        body = "Role: Dev\nPlease do not Unsubscribe from this"
        assert clean_email_body(body) == body

    def test_find_marker_footer(self):
        text = "Role: Dev\nIRS CIRCULAR 230 NOTICE\n"
        assert find_marker(text, FOOTER_MARKERS) == text.index("IRS")


# ---------------------------------------------------------------------------
# Generic header stripping and whitespace
# ---------------------------------------------------------------------------

class TestGenericCleanup:

    def test_strips_forwarded_headers(self):
        body = "From: a@b.com\nSent: Monday\nTo: x@y.com\nSubject: hi\nCc: z@y.com\n\n\n\nPOSITION: Analyst"
        assert clean_email_body(body) == "POSITION: Analyst"

    def test_strips_forwarded_message_marker(self):
        body = "---------- Forwarded message ---------\nJob Description: build things"
        assert clean_email_body(body) == "Job Description: build things"

    def test_strips_begin_forwarded_message(self):
        assert strip_forward_headers("Begin forwarded message:\nRole: x") == "\nRole: x"

    def test_underscore_separator_removed(self):
        assert clean_email_body("Role: Dev\n_____\nDetails") == "Role: Dev\n\nDetails"

    def test_collapse_many_blank_lines(self):
        assert collapse_blank_lines("Role: A\n\n\n\n\nLocation: B") == "Role: A\n\nLocation: B"

    def test_collapse_whitespace_only_lines(self):
        assert collapse_blank_lines("Role: A\n   \n\t\nLocation: B") == "Role: A\n\nLocation: B"

    def test_original_body_untouched(self, mvp_body):
        before = str(mvp_body)
        clean_email_body(mvp_body, MVP_PROFILE)
        assert mvp_body == before

    def test_empty_body(self):
        assert clean_email_body("") == ""


# ---------------------------------------------------------------------------
# Sender profiles
# ---------------------------------------------------------------------------

class TestProfileCleanup:

    def test_mvp_boilerplate_removed(self, mvp_body):
        cleaned = clean_email_body(mvp_body, MVP_PROFILE)

        assert cleaned.startswith("DUE DATE: 05/01/2025")
        assert cleaned.endswith("Description of the role goes here.")
        assert "Nancy Gordon" not in cleaned
        assert "MVP Consulting" not in cleaned
        assert "If you know of anyone" not in cleaned

    def test_mvp_contact_lines_removed(self):
        body = "POSITION: Dev\n[image: logo]\nO: 518-555-1234\nwww.mvpconsultingplus.com\n401 New Karner Road, Suite 1"
        assert clean_email_body(body, MVP_PROFILE) == "POSITION: Dev"

    def test_mindlance_boilerplate_removed(self, mindlance_body):
        cleaned = clean_email_body(mindlance_body, MINDLANCE_PROFILE)

        # "Due Date:" outranks "Role:" as a start marker.
        assert cleaned == "Due Date: 05/15/2025\n\nJob Description: Build pipelines."

    def test_mindlance_links_removed(self):
        body = "Role: Dev <https://mindlance.com/jobs> <mailto:aakashp@mindlance.com>\nFollow us on LinkedIn"
        assert clean_email_body(body, MINDLANCE_PROFILE) == "Role: Dev"

    def test_profile_rules_not_applied_without_profile(self):
        body = "POSITION: Dev\nContract Manager"
        assert clean_email_body(body) == "POSITION: Dev\nContract Manager"
