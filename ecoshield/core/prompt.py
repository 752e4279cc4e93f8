IMAGE_ANALYSIS_PROMPT = (
    "Analyze this image and provide a detailed breakdown of its components in terms of "
    "environmental impact and recyclability. Include: 1. Material composition "
    "2. Environmental impact 3. Recycling recommendations 4. Sustainable alternatives"
)

TEXT_ANALYSIS_PROMPT = "Analyze this product description in terms of environmental impact: {description}"

# Stored as the user's message when the input was an image
IMAGE_PLACEHOLDER = "Uploaded an image for analysis"

DEALER_QUERY = "scrap dealers near {lat},{lng}"
