#!/usr/bin/env python3
"""
Generate synthetic policy PDFs and an audit submission PDF for local demos.

The policies are written in the category-per-directory layout that
scripts/upload_policies.py expects; every page carries a "Page N of M"
footer. The submission contains numbered audit questions, one of which is
answered by the HH policy.

Usage:
    python scripts/generate_sample_pdf.py

Output:
    public/policies/GG/GG.1100 Member Rights.pdf
    public/policies/HH/HH.1102 Treatment Authorization Requests.pdf
    data/samples/audit_submission.pdf
"""

from pathlib import Path

from fpdf import FPDF


class PolicyDocument(FPDF):
    """PDF with a policy header and a "Page N of M" footer."""

    def __init__(self, title: str):
        super().__init__()
        self.title_text = title

    def header(self):
        self.set_font("Helvetica", "B", 10)
        self.set_text_color(100, 100, 100)
        self.cell(0, 8, self.title_text, 0, 1, "C")
        self.line(10, self.get_y(), 200, self.get_y())
        self.ln(4)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Page {self.page_no()} of {{nb}}", 0, 0, "C")

    def section_title(self, title: str):
        self.set_font("Helvetica", "B", 13)
        self.set_text_color(0, 0, 0)
        self.ln(4)
        self.cell(0, 9, title, 0, 1)
        self.ln(1)

    def body_text(self, text: str):
        self.set_font("Helvetica", "", 10)
        self.set_text_color(30, 30, 30)
        self.multi_cell(0, 5.5, text)
        self.ln(2)


def _new_pdf(title: str) -> PolicyDocument:
    pdf = PolicyDocument(title)
    pdf.alias_nb_pages()
    pdf.set_auto_page_break(auto=True, margin=20)
    return pdf


def _save(pdf: FPDF, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    pdf.output(str(path))
    print(f"Generated: {path} ({path.stat().st_size:,} bytes)")


def generate_policies(root: Path) -> None:
    # =========================================================================
    # GG.1100 — unrelated to authorization timeframes
    # =========================================================================
    pdf = _new_pdf("GG.1100: Member Rights and Responsibilities")
    pdf.add_page()
    pdf.section_title("I. Purpose")
    pdf.body_text(
        "This policy describes the rights and responsibilities of Members, "
        "including the right to be treated with respect, to receive "
        "information about the organization and its services, and to "
        "voice complaints or appeals."
    )
    pdf.add_page()
    pdf.section_title("II. Policy")
    pdf.body_text(
        "Members shall receive a Member Handbook upon enrollment and "
        "annually thereafter. The Handbook shall be available in threshold "
        "languages and alternative formats upon request."
    )
    _save(pdf, root / "GG" / "GG.1100 Member Rights.pdf")

    # =========================================================================
    # HH.1102 — answers the urgent authorization question
    # =========================================================================
    pdf = _new_pdf("HH.1102: Treatment Authorization Requests")
    pdf.add_page()
    pdf.section_title("I. Purpose")
    pdf.body_text(
        "This policy establishes the process for reviewing Treatment "
        "Authorization Requests (TARs) submitted by Providers."
    )
    pdf.add_page()
    pdf.section_title("II. Timeframes")
    pdf.body_text(
        "The Utilization Management department must process urgent "
        "requests within seventy-two (72) hours of receipt of the request. "
        "Routine requests shall be processed within five (5) working days."
    )
    _save(pdf, root / "HH" / "HH.1102 Treatment Authorization Requests.pdf")


def generate_submission(path: Path) -> None:
    pdf = _new_pdf("Medi-Cal Audit Tool - Utilization Management")
    pdf.add_page()
    pdf.section_title("Section A: Prior Authorization")
    pdf.body_text(
        "1. Are urgent authorizations processed within 72 hours?\n\n"
        "2. Does the P&P state that routine authorization requests are "
        "decided within five working days?\n\n"
        "3. Does the P&P describe how Members are notified of denied "
        "authorization requests?"
    )
    _save(pdf, path)


if __name__ == "__main__":
    generate_policies(Path("public/policies"))
    generate_submission(Path("data/samples/audit_submission.pdf"))
