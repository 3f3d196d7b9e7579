"""Canonical sponsorship placement taxonomy.

Each entry is a standardized placement name with its category, a popularity
flag and the aliases seen in real sponsorship decks. Entries are
append-only: ids are persisted in ``placement_options`` and referenced by
``package_placements``, so never renumber or remove an entry.
"""

PLACEMENT_TAXONOMY = [
    # A) Digital & Web
    {
        "id": 1,
        "canonical_name": "Website Logo & Link",
        "category": "Digital & Web",
        "is_popular": True,
        "aliases": ["website logo", "sponsor page", "partners page", "sponsor listing", "featured logo",
                    "homepage logo", "footer logo", "header logo", "clickable logo", "website link",
                    "backlink", "do-follow link", "web logo", "site logo", "website logo & link"],
    },
    {
        "id": 2,
        "canonical_name": "Dedicated Sponsor Page",
        "category": "Digital & Web",
        "is_popular": False,
        "aliases": ["sponsor profile", "dedicated page", "sponsor spotlight page", "brand story page",
                    "landing page on club site", "sponsor bio", "partner profile page"],
    },
    {
        "id": 3,
        "canonical_name": "Blog Feature",
        "category": "Digital & Web",
        "is_popular": False,
        "aliases": ["blog post", "feature article", "editorial", "write-up", "interview",
                    "blog spotlight", "article feature"],
    },
    {
        "id": 4,
        "canonical_name": "Newsletter Feature",
        "category": "Digital & Web",
        "is_popular": True,
        "aliases": ["email newsletter", "edm", "e-blast", "club email", "mailout", "e-bulletin",
                    "campaign email", "shout in email", "email highlight", "newsletter mention",
                    "league newsletter mention"],
    },
    {
        "id": 5,
        "canonical_name": "App Placement",
        "category": "Digital & Web",
        "is_popular": False,
        "aliases": ["teamsnap tile", "league app", "push notification", "in-app banner",
                    "mobile app listing", "app feature", "mobile placement"],
    },
    {
        "id": 6,
        "canonical_name": "Digital Ad Rotation",
        "category": "Digital & Web",
        "is_popular": False,
        "aliases": ["banner ad", "leaderboard", "mpu", "rectangle", "display ad", "rotation",
                    "impression package", "cpm buy", "digital banner", "web ad"],
    },

    # B) Social Media
    {
        "id": 7,
        "canonical_name": "Social Media Announcement",
        "category": "Social Media",
        "is_popular": True,
        "aliases": ["announcement post", "welcome post", "thank-you post", "sponsor shoutout",
                    "partner intro", "social announcement", "welcome announcement", "social media shoutout"],
    },
    {
        "id": 8,
        "canonical_name": "Social Media Spotlight Series",
        "category": "Social Media",
        "is_popular": False,
        "aliases": ["sponsor spotlight", "feature friday", "monthly feature", "partner profile",
                    "story series", "spotlight series", "featured partner", "social media spotlight"],
    },
    {
        "id": 9,
        "canonical_name": "Social Media Story Mentions",
        "category": "Social Media",
        "is_popular": False,
        "aliases": ["instagram story", "reels", "tiktok", "facebook story", "highlights", "swipe-up",
                    "tag/mention", "story mention", "ig story", "story highlight"],
    },
    {
        "id": 10,
        "canonical_name": "Social Content Production",
        "category": "Social Media",
        "is_popular": False,
        "aliases": ["club-produced content", "creative asset creation", "reel production", "video feature",
                    "content package", "content creation", "produced content"],
    },
    {
        "id": 11,
        "canonical_name": "Influencer/Player Post",
        "category": "Social Media",
        "is_popular": False,
        "aliases": ["player feature", "coach mention", "ambassador post", "takeover", "ugc",
                    "player post", "athlete post", "influencer content"],
    },

    # C) Email & CRM
    {
        "id": 12,
        "canonical_name": "Email Mention",
        "category": "Email & CRM",
        "is_popular": False,
        "aliases": ["email footer logo", "sponsor blurb in email", "email logo", "footer mention"],
    },
    {
        "id": 13,
        "canonical_name": "Dedicated Email",
        "category": "Email & CRM",
        "is_popular": False,
        "aliases": ["solo email", "dedicated e-blast", "sponsored email", "standalone email",
                    "exclusive email"],
    },
    {
        "id": 14,
        "canonical_name": "Email Coupon/Offer",
        "category": "Email & CRM",
        "is_popular": False,
        "aliases": ["promo code", "coupon", "offer insert", "redemption link", "call-to-action in email",
                    "email promo", "discount code"],
    },

    # D) On-Site Signage & Facilities
    {
        "id": 15,
        "canonical_name": "Fence Banner (Standard)",
        "category": "On-Site Signage",
        "is_popular": True,
        "aliases": ["outfield banner", "field fence sign", "3x5 banner", "4x6 banner", "mesh banner",
                    "vinyl banner", "fence sign", "field banner", "perimeter banner"],
    },
    {
        "id": 16,
        "canonical_name": "Fence Banner (Premium)",
        "category": "On-Site Signage",
        "is_popular": False,
        "aliases": ["premier location", "home plate", "prime placement", "backstop banner",
                    "high-traffic spot", "premium banner", "premium location", "4x8 premium banner"],
    },
    {
        "id": 17,
        "canonical_name": "Scoreboard Panel",
        "category": "On-Site Signage",
        "is_popular": True,
        "aliases": ["scoreboard sign", "top panel", "bottom panel", "side panel",
                    "digital scoreboard ad", "scoreboard logo", "scoreboard placement", "scoreboard side panel"],
    },
    {
        "id": 18,
        "canonical_name": "Entrance/Welcome Sign",
        "category": "On-Site Signage",
        "is_popular": False,
        "aliases": ["entrance banner", "welcome arch", "gate sign", "parking entry sign", "entry sign",
                    "welcome banner"],
    },
    {
        "id": 19,
        "canonical_name": "Dugout/Seating Branding",
        "category": "On-Site Signage",
        "is_popular": False,
        "aliases": ["dugout sign", "bench wrap", "bleacher branding", "sideline board", "dugout banner",
                    "bench branding", "seating area sign"],
    },
    {
        "id": 20,
        "canonical_name": "Field Naming Rights",
        "category": "On-Site Signage",
        "is_popular": False,
        "aliases": ["field naming", "court naming", "rink naming", "pitch naming", "complex naming",
                    "facility naming", "stadium naming", "venue naming"],
    },
    {
        "id": 21,
        "canonical_name": "Wayfinding/Site Map",
        "category": "On-Site Signage",
        "is_popular": False,
        "aliases": ["directional signage", "site map logo", "field map placement", "wayfinding sign",
                    "venue map"],
    },

    # E) Uniforms, Apparel & Equipment
    {
        "id": 22,
        "canonical_name": "Jersey Front Logo",
        "category": "Uniforms & Apparel",
        "is_popular": True,
        "aliases": ["front-of-jersey", "chest logo", "kit front", "primary jersey sponsor", "jersey front",
                    "front logo", "chest placement"],
    },
    {
        "id": 23,
        "canonical_name": "Jersey Back Logo",
        "category": "Uniforms & Apparel",
        "is_popular": False,
        "aliases": ["back-of-jersey", "number panel", "nameplate area logo", "jersey back", "back logo"],
    },
    {
        "id": 24,
        "canonical_name": "Sleeve/Shoulder Patch",
        "category": "Uniforms & Apparel",
        "is_popular": False,
        "aliases": ["sleeve patch", "shoulder patch", "arm logo", "sleeve logo", "shoulder logo",
                    "team name on jersey sleeve"],
    },
    {
        "id": 25,
        "canonical_name": "Shorts/Pants Logo",
        "category": "Uniforms & Apparel",
        "is_popular": False,
        "aliases": ["shorts logo", "leg logo", "thigh logo", "pants logo", "short branding"],
    },
    {
        "id": 26,
        "canonical_name": "Training Jersey",
        "category": "Uniforms & Apparel",
        "is_popular": False,
        "aliases": ["practice jersey", "training top", "warm-up tee", "practice gear", "training kit"],
    },
    {
        "id": 27,
        "canonical_name": "Coaches Gear",
        "category": "Uniforms & Apparel",
        "is_popular": False,
        "aliases": ["coach polo", "staff jacket", "bench apparel", "coaching staff gear", "staff uniform"],
    },
    {
        "id": 28,
        "canonical_name": "Team Apparel/Merch",
        "category": "Uniforms & Apparel",
        "is_popular": False,
        "aliases": ["hoodie", "hat", "cap", "beanie", "scarf", "bag", "water bottle", "towel", "lanyard",
                    "merchandise", "team merch", "fan gear"],
    },
    {
        "id": 29,
        "canonical_name": "Equipment Branding",
        "category": "Uniforms & Apparel",
        "is_popular": False,
        "aliases": ["goals", "nets", "balls", "cones", "water coolers", "tents", "benches",
                    "scorer's table", "equipment logo", "gear branding"],
    },

    # F) Events & Activations
    {
        "id": 30,
        "canonical_name": "Title Sponsor",
        "category": "Events & Activations",
        "is_popular": True,
        "aliases": ["naming sponsor", "presented by", "headline sponsor", "title partner"],
    },
    {
        "id": 31,
        "canonical_name": "Presenting Sponsor",
        "category": "Events & Activations",
        "is_popular": False,
        "aliases": ["presenting partner", "supporting sponsor", "powered by", "event sponsor"],
    },
    {
        "id": 32,
        "canonical_name": "Event Booth Space",
        "category": "Events & Activations",
        "is_popular": True,
        "aliases": ["booth", "vendor table", "tent space", "activation space", "pop-up", "kiosk",
                    "vendor booth", "exhibition space", "vendor table at opening day"],
    },
    {
        "id": 33,
        "canonical_name": "Sampling/Product Trial",
        "category": "Events & Activations",
        "is_popular": False,
        "aliases": ["sampling", "product seeding", "giveaway", "coupon handout", "swag distribution",
                    "product demo", "free samples"],
    },
    {
        "id": 34,
        "canonical_name": "On-Field Promotion",
        "category": "Events & Activations",
        "is_popular": False,
        "aliases": ["on-field activation", "half-time promo", "time-out feature", "ceremonial first pitch",
                    "ceremonial first kick", "on-field activity", "halftime activation"],
    },
    {
        "id": 35,
        "canonical_name": "PA Announcements",
        "category": "Events & Activations",
        "is_popular": True,
        "aliases": ["public address mention", "in-game read", "stadium read", "mc recognition",
                    "announcer mention", "pa mention"],
    },
    {
        "id": 36,
        "canonical_name": "Tickets/Entries",
        "category": "Events & Activations",
        "is_popular": False,
        "aliases": ["comp tickets", "passes", "tournament entries", "foursome", "hospitality passes",
                    "complimentary tickets", "guest passes"],
    },
    {
        "id": 37,
        "canonical_name": "Stage/Mike Time",
        "category": "Events & Activations",
        "is_popular": False,
        "aliases": ["speaking opportunity", "stage recognition", "award presenter", "check presentation",
                    "mic time", "speaking slot"],
    },
    {
        "id": 38,
        "canonical_name": "Photo Ops/Backdrop",
        "category": "Events & Activations",
        "is_popular": False,
        "aliases": ["step-and-repeat", "media wall", "photo booth branding", "photo backdrop",
                    "photo opportunity", "branded backdrop"],
    },
    {
        "id": 39,
        "canonical_name": "Event Asset Logo",
        "category": "Events & Activations",
        "is_popular": False,
        "aliases": ["event t-shirt", "wristband", "credentials", "bib", "badge",
                    "event merchandise", "event gear"],
    },

    # G) Community, Goodwill & Recognition
    {
        "id": 40,
        "canonical_name": "Plaque/Certificate",
        "category": "Community & Recognition",
        "is_popular": True,
        "aliases": ["thank-you plaque", "framed team photo", "certificate of appreciation",
                    "recognition plaque", "award", "commemorative plaque"],
    },
    {
        "id": 41,
        "canonical_name": "Community Partner Recognition",
        "category": "Community & Recognition",
        "is_popular": False,
        "aliases": ["community partner", "youth supporter", "scholarship supporter", "community sponsor",
                    "local partner"],
    },
    {
        "id": 42,
        "canonical_name": "Team Sponsorship",
        "category": "Community & Recognition",
        "is_popular": False,
        "aliases": ["team naming", "team sponsor", "name on team shirts", "rec league sponsor",
                    "youth team sponsor"],
    },

    # H) Content & Rights
    {
        "id": 43,
        "canonical_name": "Content Usage Rights",
        "category": "Content & Rights",
        "is_popular": False,
        "aliases": ["content rights", "likeness usage", "logo lock-up usage", "co-branding rights",
                    "brand usage", "image rights"],
    },
    {
        "id": 44,
        "canonical_name": "Photo/Video Deliverables",
        "category": "Content & Rights",
        "is_popular": False,
        "aliases": ["photo set", "highlight video", "recap video", "sizzle reel", "video deliverable"],
    },
    {
        "id": 45,
        "canonical_name": "Case Study/Testimonial",
        "category": "Content & Rights",
        "is_popular": False,
        "aliases": ["case study", "testimonial", "success story", "quote approval", "sponsor testimonial"],
    },

    # I) Offers, Commerce & Lead Gen
    {
        "id": 46,
        "canonical_name": "Coupon/Redemption",
        "category": "Offers & Commerce",
        "is_popular": False,
        "aliases": ["coupon distribution", "offer code", "discount flyer", "qr redemption"],
    },
    {
        "id": 47,
        "canonical_name": "Lead Capture",
        "category": "Offers & Commerce",
        "is_popular": False,
        "aliases": ["lead form", "email capture", "sweepstakes", "contest", "giveaway entries",
                    "sign-up sheet", "lead generation"],
    },
    {
        "id": 48,
        "canonical_name": "On-Site Sales",
        "category": "Offers & Commerce",
        "is_popular": False,
        "aliases": ["merch table", "retail booth", "product sales permission", "vendor sales",
                    "on-site retail"],
    },
]

# Coarse category classifier: a keyword in a placement phrase implies the
# category it is listed under. A phrase may imply several categories.
CATEGORY_KEYWORDS = {
    "Digital & Web": ["website", "web", "site", "online", "homepage", "digital", "app", "blog",
                      "newsletter", "link", "webpage"],
    "Social Media": ["social", "facebook", "instagram", "tiktok", "twitter", "reels", "story",
                     "stories", "shoutout", "influencer", "post", "posts"],
    "Email & CRM": ["email", "emails", "blast", "mailout", "crm"],
    "On-Site Signage": ["banner", "banners", "sign", "signs", "signage", "fence", "scoreboard",
                        "dugout", "field", "entrance", "bleacher", "bleachers", "backstop", "outfield"],
    "Uniforms & Apparel": ["jersey", "jerseys", "uniform", "uniforms", "sleeve", "shirt", "shirts",
                           "apparel", "hat", "hats", "cap", "hoodie", "merch", "patch", "shorts",
                           "equipment", "gear", "kit", "helmet", "helmets"],
    "Events & Activations": ["event", "events", "booth", "tent", "table", "tournament", "tickets",
                             "announcer", "halftime", "sampling", "title", "presenting", "stage",
                             "backdrop", "opening"],
    "Community & Recognition": ["plaque", "certificate", "recognition", "community", "award", "banquet"],
    "Content & Rights": ["photo", "photos", "video", "videos", "content", "rights", "testimonial"],
    "Offers & Commerce": ["coupon", "discount", "promo", "lead", "leads", "sweepstakes", "sales", "retail"],
}

TAXONOMY_VERSION = "placements-v1"
