import math

# --- Constants ---
STEEL_DENSITY = 7850.0  # kg/m³


# --- Engineering Logic ---
def calculate_pile_metrics(outer_diameter, wall_thickness, pile_length, paint_length, pile_count):
    """
    Calculates section, weight and paint quantities for a tubular steel pile.
    Inputs: diameters/thickness in mm, lengths in m.
    Returns: dict of inner_diameter (mm), cross_section_area (mm²),
    single_pile_weight (kg), paint_area_per_pile (m²), total_weight (kg),
    total_paint_area (m²)
    """
    # Radii in m
    outer_radius = outer_diameter / 2000
    inner_radius = (outer_diameter - 2 * wall_thickness) / 2000
    inner_diameter = inner_radius * 2000  # back to mm

    # Annulus area, m² -> mm²
    cross_section_area = math.pi * (outer_radius**2 - inner_radius**2) * 1000000

    # Weight = A (m²) * L (m) * rho
    volume = cross_section_area / 1000000 * pile_length
    single_pile_weight = volume * STEEL_DENSITY

    # Paint area = outer perimeter (m) * paint length
    if paint_length > 0:
        paint_area_per_pile = math.pi * (outer_diameter / 1000) * paint_length
    else:
        paint_area_per_pile = 0

    return {
        'inner_diameter': inner_diameter,
        'cross_section_area': cross_section_area,
        'single_pile_weight': single_pile_weight,
        'paint_area_per_pile': paint_area_per_pile,
        'total_weight': single_pile_weight * pile_count,
        'total_paint_area': paint_area_per_pile * pile_count,
    }


def metrics_for_group(group):
    """Run the calculator on a stored pile group record."""
    return calculate_pile_metrics(
        group['outer_diameter'],
        group['wall_thickness'],
        group['pile_length'],
        group['paint_length'],
        group['pile_count'],
    )


def geometry_warnings(outer_diameter, wall_thickness, pile_length, paint_length, pile_count):
    """
    Sanity checks on pile geometry. Never raises; results are still computed
    for invalid input, these messages are shown next to them.
    """
    warnings = []
    if pile_count < 1:
        warnings.append(f"Pile count {pile_count} should be at least 1.")
    if outer_diameter <= 0:
        warnings.append("Outer diameter must be greater than zero.")
    if wall_thickness <= 0:
        warnings.append("Wall thickness must be greater than zero.")
    elif outer_diameter > 0 and wall_thickness >= outer_diameter / 2:
        warnings.append(
            f"Wall thickness {wall_thickness} mm >= half the outer diameter "
            f"({outer_diameter / 2} mm). Section is not a tube."
        )
    if pile_length <= 0:
        warnings.append("Pile length must be greater than zero.")
    if paint_length < 0:
        warnings.append("Paint length cannot be negative. Use 0 for no painting.")
    elif paint_length > pile_length > 0:
        warnings.append(f"Paint length {paint_length} m exceeds pile length {pile_length} m.")
    return warnings


# --- Display Helpers ---
def kg_to_tons(kg):
    return kg / 1000


def format_weight(kg):
    """Weight in metric tons, 3 decimals."""
    return f"{kg_to_tons(kg):.3f}"


def format_area(area):
    return f"{area:.2f}"


def format_length(mm):
    return f"{mm:.2f}"
