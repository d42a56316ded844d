import base64
import datetime
import html
import io

import matplotlib.pyplot as plt
import matplotlib.patches as patches
import pandas as pd

from pile_calculations import (
    STEEL_DENSITY,
    calculate_pile_metrics,
    format_area,
    format_length,
    format_weight,
    kg_to_tons,
)

SUMMARY_COLUMNS = [
    "Group Name",
    "Pile Count",
    "Diameter (mm)",
    "Thickness (mm)",
    "Length (m)",
    "Paint Length (m)",
    "Total Weight (t)",
    "Total Paint Area (m²)",
]


# --- Diagram ---
def draw_pile_section(outer_diameter, wall_thickness):
    """
    Draws the annular cross-section of a tubular pile.
    """
    fig, ax = plt.subplots(figsize=(4, 4))

    r_out = outer_diameter / 2
    r_in = min(max(r_out - wall_thickness, 0), r_out)

    if r_out <= 0:
        ax.text(0.5, 0.5, "Enter pile geometry", ha='center', va='center', color='#666')
        ax.axis('off')
        return fig

    # 1. Steel ring
    ring = patches.Wedge((0, 0), r_out, 0, 360, width=r_out - r_in, edgecolor='#333', facecolor='#9fb3c8', linewidth=1.5)
    ax.add_patch(ring)

    # 2. Inner void
    if r_in > 0:
        void = patches.Circle((0, 0), radius=r_in, edgecolor='#333', facecolor='#fff', linewidth=1, linestyle='--')
        ax.add_patch(void)

    # 3. Annotations
    ax.annotate('', xy=(-r_out, -r_out * 1.15), xytext=(r_out, -r_out * 1.15), arrowprops=dict(arrowstyle='<->', color='blue'))
    ax.text(0, -r_out * 1.3, f'OD={outer_diameter:g} mm', color='blue', ha='center', va='center', fontsize=9)
    ax.annotate('', xy=(r_in, 0), xytext=(r_out, 0), arrowprops=dict(arrowstyle='<->', color='maroon'))
    ax.text((r_in + r_out) / 2, r_out * 0.08, f't={wall_thickness:g}', color='maroon', ha='center', va='bottom', fontsize=8)

    ax.set_xlim(-r_out * 1.3, r_out * 1.3)
    ax.set_ylim(-r_out * 1.45, r_out * 1.2)
    ax.set_aspect('equal')
    ax.axis('off')
    ax.set_title(f"Tubular Pile Ø{outer_diameter:g} x {wall_thickness:g}", fontsize=10)

    return fig


def figure_to_base64(fig):
    buf = io.BytesIO()
    fig.savefig(buf, format="png", bbox_inches='tight')
    plt.close(fig)
    buf.seek(0)
    return base64.b64encode(buf.read()).decode()


# --- Tables ---
def summary_dataframe(store):
    """One row per pile group, rounded to display precision."""
    rows = []
    for g in store.summary():
        rows.append({
            "Group Name": g['group_name'],
            "Pile Count": g['pile_count'],
            "Diameter (mm)": g['outer_diameter'],
            "Thickness (mm)": g['wall_thickness'],
            "Length (m)": g['pile_length'],
            "Paint Length (m)": g['paint_length'],
            "Total Weight (t)": round(kg_to_tons(g['total_weight']), 3),
            "Total Paint Area (m²)": round(g['total_paint_area'], 2),
        })
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def summary_csv(store):
    return summary_dataframe(store).to_csv(index=False)


# --- HTML Report ---
REPORT_STYLE = """
<style>
    @media print {
        @page { size: A4; margin: 20mm; }
        body { -webkit-print-color-adjust: exact; }
    }
    body {
        font-family: 'Roboto', sans-serif;
        color: #333;
        line-height: 1.5;
        max-width: 210mm;
        margin: 0 auto;
        padding: 20px;
    }
    header {
        border-bottom: 2px solid #0066cc;
        padding-bottom: 20px;
        margin-bottom: 30px;
        display: flex;
        justify-content: space-between;
        align-items: center;
    }
    .header-left h1 { margin: 0; color: #0066cc; font-size: 24px; }
    .header-left p { margin: 5px 0 0; color: #666; font-size: 14px; }
    h2 {
        color: #0066cc;
        font-size: 18px;
        border-left: 5px solid #0066cc;
        margin-top: 30px;
        background: #f8f9fa;
        padding: 8px 10px;
    }
    h3 { color: #444; font-size: 16px; border-bottom: 1px solid #ddd; padding-bottom: 5px; }
    .calc-step { margin-bottom: 15px; page-break-inside: avoid; }
    .formula-box {
        background: #fdfdfd;
        border: 1px solid #eee;
        border-left: 3px solid #ddd;
        padding: 8px 12px;
    }
    .subst { color: #666; margin-top: 4px; padding-left: 10px; border-left: 2px dotted #ccc; }
    .result { font-weight: bold; color: #000; }
    .status-warn { color: #b36b00; font-weight: bold; }
    table.params { width: 100%; border-collapse: collapse; margin: 10px 0; }
    table.params th, table.params td { border: 1px solid #eee; padding: 6px; text-align: left; }
    table.params th { background: #f8f9fa; }
    footer {
        margin-top: 50px;
        border-top: 1px solid #eee;
        padding-top: 10px;
        font-size: 12px;
        color: #999;
        text-align: center;
    }
</style>
"""

KATEX_HEAD = """
<link rel="stylesheet" href="https://cdn.jsdelivr.net/npm/katex@0.16.4/dist/katex.min.css">
<script defer src="https://cdn.jsdelivr.net/npm/katex@0.16.4/dist/katex.min.js"></script>
<script defer src="https://cdn.jsdelivr.net/npm/katex@0.16.4/dist/contrib/auto-render.min.js"></script>
<script>
    document.addEventListener("DOMContentLoaded", function() {
        renderMathInElement(document.body, {
            delimiters: [
                {left: "$$", right: "$$", display: true},
                {left: "$", right: "$", display: false}
            ]
        });
    });
</script>
"""


def _group_section(index, group, include_figure=True):
    calc = calculate_pile_metrics(
        group['outer_diameter'], group['wall_thickness'],
        group['pile_length'], group['paint_length'], group['pile_count'],
    )
    od = group['outer_diameter']
    t = group['wall_thickness']
    L = group['pile_length']
    Lp = group['paint_length']
    n = group['pile_count']
    name = html.escape(str(group['group_name']))

    figure_html = ""
    if include_figure:
        img_b64 = figure_to_base64(draw_pile_section(od, t))
        figure_html = f"""
        <div style="text-align: center; margin-bottom: 10px;">
            <img src="data:image/png;base64,{img_b64}" style="max-width: 40%; border: 1px solid #eee; padding: 10px; border-radius: 4px;">
        </div>
        """

    if Lp > 0:
        paint_html = f"""
            <div class="formula-box">$$A_p = \\pi \\cdot \\frac{{D}}{{1000}} \\cdot L_p$$</div>
            <div class="subst">$$= \\pi \\times {od / 1000:g} \\times {Lp:g}$$ = <span class="result">{format_area(calc['paint_area_per_pile'])} m²</span></div>
        """
    else:
        paint_html = """
            <div class="subst">Paint length is 0, no painting required. $A_p = 0$</div>
        """

    return f"""
    <h3>{index}. {name} ({n} piles)</h3>
    {figure_html}
    <table class="params">
        <tr><th>Outer Diameter ($D$)</th><td>{od:g} mm</td></tr>
        <tr><th>Wall Thickness ($t$)</th><td>{t:g} mm</td></tr>
        <tr><th>Pile Length ($L$)</th><td>{L:g} m</td></tr>
        <tr><th>Paint Length ($L_p$)</th><td>{Lp:g} m</td></tr>
    </table>
    <div class="calc-step">
        <span class="calc-label">Inner Diameter</span>
        <div class="formula-box">$$d = D - 2t$$</div>
        <div class="subst">$$= {od:g} - 2 \\times {t:g}$$ = <span class="result">{format_length(calc['inner_diameter'])} mm</span></div>
    </div>
    <div class="calc-step">
        <span class="calc-label">Cross Section Area</span>
        <div class="formula-box">$$A = \\frac{{\\pi}}{{4}} (D^2 - d^2)$$</div>
        <div class="subst">= <span class="result">{calc['cross_section_area']:.2f} mm²</span></div>
    </div>
    <div class="calc-step">
        <span class="calc-label">Single Pile Weight</span>
        <div class="formula-box">$$W = A \\cdot 10^{{-6}} \\cdot L \\cdot \\rho_s$$</div>
        <div class="subst">$$= {calc['cross_section_area']:.2f} \\times 10^{{-6}} \\times {L:g} \\times {STEEL_DENSITY:g}$$ = <span class="result">{format_weight(calc['single_pile_weight'])} t</span></div>
    </div>
    <div class="calc-step">
        <span class="calc-label">Paint Area per Pile</span>
        {paint_html}
    </div>
    <div class="calc-step">
        <span class="calc-label">Group Totals (× {n})</span>
        <div class="subst">Weight = <span class="result">{format_weight(calc['total_weight'])} t</span>,
        Paint Area = <span class="result">{format_area(calc['total_paint_area'])} m²</span></div>
    </div>
    """


def build_report_html(store, project=None, include_figures=True):
    """
    Printable A4 calculation report for all pile groups in the store.
    project: dict with project_title, project_number, designer, design_date
    """
    project = project or {}
    title = html.escape(str(project.get('project_title', 'N/A')))
    number = html.escape(str(project.get('project_number', 'N/A')))
    designer = html.escape(str(project.get('designer', 'N/A')))
    design_date = project.get('design_date', 'N/A')
    if isinstance(design_date, (datetime.date, datetime.datetime)):
        design_date = design_date.isoformat()

    totals = store.totals()
    groups = store.groups

    report_html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="UTF-8">
        <title>Tubular Piles Report</title>
        {REPORT_STYLE}
        {KATEX_HEAD}
    </head>
    <body>
        <header>
            <div class="header-left">
                <h1>Tubular Piles Weight & Painting Area</h1>
                <p>{title} | Designer: {designer}</p>
            </div>
            <div class="header-right">
                <div style="text-align:right;">
                    <strong>Date:</strong> {html.escape(str(design_date))}<br>
                    <strong>Ref:</strong> {number}
                </div>
            </div>
        </header>

        <h2>1. Design Data</h2>
        <table class="params">
            <tr><th>Steel Density ($\\rho_s$)</th><td>{STEEL_DENSITY:g} kg/m³</td></tr>
            <tr><th>Number of Pile Groups</th><td>{len(groups)}</td></tr>
            <tr><th>Total Number of Piles</th><td>{sum(g['pile_count'] for g in groups)}</td></tr>
        </table>

        <h2>2. Pile Group Calculations</h2>
    """

    if not groups:
        report_html += """
        <div class="subst status-warn">No pile groups added.</div>
        """
    for i, g in enumerate(groups, start=1):
        report_html += _group_section(i, g, include_figure=include_figures)

    summary_table = summary_dataframe(store).to_html(index=False, classes="params", border=0, escape=True)
    report_html += f"""
        <h2>3. Summary</h2>
        {summary_table}

        <h2>4. Project Totals</h2>
        <table class="params">
            <tr><th>Total Weight</th><td><strong>{format_weight(totals['total_weight'])} tons</strong></td></tr>
            <tr><th>Total Paint Area</th><td><strong>{format_area(totals['total_paint_area'])} m²</strong></td></tr>
        </table>

        <footer>
            Generated by C&S Calc Pro | Tubular Piles Calculator
        </footer>
    </body>
    </html>
    """
    return report_html
