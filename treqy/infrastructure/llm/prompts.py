"""
Instruction prompt for material extraction from finish schedules.
"""

from treqy.core.entities.extraction import NOT_USED_MARKER, UNSPECIFIED_MANUFACTURER

MATERIAL_EXTRACTION_PROMPT = f"""Extract all materials information from this architectural finish schedule PDF and return them grouped by manufacturer_name. Each material should have:

- name (from "Material" column) - REQUIRED
- tag (from "Key" column)
- category and subcategory (category REQUIRED; deduce from the material type or infer from context)
- location (if specified)
- reference_model_sku (from "Size" or "Color/Finish" if applicable)
- dimensions (if specified)
- notes (from "Description/Comments")

Important rules:
- If the material contains "{NOT_USED_MARKER}", skip it entirely
- If no manufacturer is listed, set "manufacturer_name": "{UNSPECIFIED_MANUFACTURER}"
- Group all materials by their manufacturer_name key
- Use null for missing values, NOT empty strings

OUTPUT FORMAT: Return ONLY a valid JSON array. No explanations, no markdown, no text before or after the JSON.

Return the data in this exact format:
[
  {{
    "manufacturer_name": "MANUFACTURER_NAME",
    "materials": [
      {{
        "name": "material name",
        "tag": "key code",
        "category": "category",
        "subcategory": "subcategory",
        "location": "location",
        "reference_model_sku": "sku/model",
        "dimensions": "dimensions",
        "notes": "notes"
      }}
    ]
  }}
]"""
