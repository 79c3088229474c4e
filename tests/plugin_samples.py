"""Plugin file contents shared by the tests."""

HELLO_DOLLY = b"""<?php
/**
 * @package Hello_Dolly
 * @version 1.7.2
 */
/*
Plugin Name: Hello Dolly
Plugin URI: http://wordpress.org/plugins/hello-dolly/
Description: This is not just a plugin, it symbolizes the hope and enthusiasm of an entire generation.
Author: Matt Mullenweg
Version: 1.7.2
Author URI: http://ma.tt/
*/

function hello_dolly_get_lyric() {
	$lyrics = "Hello, Dolly";
	return wptexturize( $lyrics );
}
"""

HELLO_DOLLY_MINIMAL = b"Plugin Name: Hello Dolly\nVersion: 1.7.2\n"

AKISMET = b"""<?php
/**
 * @package Akismet
 */
/*
Plugin Name: Akismet Anti-spam: Spam Protection
Plugin URI: https://akismet.com/
Description: Used by millions, Akismet is quite possibly the best way in the world to protect your blog from spam.
Version: 5.3
Requires at least: 5.8
Requires PHP: 5.6.20
Author: Automattic - Anti-spam Team
Author URI: https://automattic.com/wordpress-plugins/
License: GPLv2 or later
Text Domain: akismet
*/

// Make sure we don't expose any info if called directly
if ( !function_exists( 'add_action' ) ) {
	exit;
}

define( 'AKISMET_VERSION', '5.3' );
define( 'AKISMET__MINIMUM_WP_VERSION', '5.8' );
"""

AKISMET_CLASS = b"""<?php

class Akismet {
	const API_HOST = 'rest.akismet.com';
	const API_PORT = 80;

	public static function init() {
	}
}
"""

NO_VERSION_HEADER = b"""<?php
/**
 * Plugin Name: Beta Widgets
 * Description: Widgets that are still in beta.
 */

define( 'BETA_WIDGETS_VERSION', '2.0-beta1' );
"""

MISMATCHED_VERSION = b"""<?php
/**
 * Plugin Name: Drifting Plugin
 * Version: 1.0
 */

define( 'DRIFTING_PLUGIN_VERSION', '1.0.1' );
"""


def late_header(filler_lines: int = 500) -> bytes:
    """A valid header pushed behind *filler_lines* lines of 18 bytes each."""
    return b"<?php\n" + b"// filler line xx\n" * filler_lines + b"/*\nPlugin Name: Too Late\nVersion: 9.9\n*/\n"
